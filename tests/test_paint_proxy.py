from __future__ import annotations

import unittest
from types import SimpleNamespace

try:
    from controller.models import ChatEvent
    from controller.models import SoulAction
    from misc.paint_proxy import PaintRequestError
    from misc.paint_proxy import handle_paint
    from misc.paint_proxy import painting_result_text
    from misc.paint_proxy import request_painting
except ModuleNotFoundError:
    request_painting = None


class FakeResponse:
    def __init__(self, *, status=200, content_type="application/json", payload=None, text=""):
        self.status = status
        self.headers = {"content-type": content_type} if content_type else {}
        self.payload = payload
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self, content_type=None):
        return self.payload

    async def text(self):
        return self._text


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.posts = []

    def post(self, url, json=None):
        self.posts.append((url, json))
        return self.response


class FakeChannel:
    def __init__(self):
        self.sent = []

    async def send(self, text):
        self.sent.append(text)


def _paint_action(prompt="a lighthouse at dusk", with_target=True):
    metadata = {"prompt": prompt}
    if with_target:
        metadata["discord_message"] = ChatEvent(
            message_id=555,
            channel_id=77,
            guild_id=1,
            user_id=11,
            user_display_name="Alice",
            at_mention_username="alice",
        )
    return SoulAction(action="paint", metadata=metadata)


@unittest.skipIf(request_painting is None, "aiohttp not installed")
class PaintingResultTextTests(unittest.TestCase):
    def test_message_field_wins(self):
        self.assertEqual(painting_result_text({"message": "https://img/1.png"}), "https://img/1.png")

    def test_other_payloads_are_serialized(self):
        self.assertEqual(painting_result_text({"url": "x"}), '{"url": "x"}')
        self.assertEqual(painting_result_text("https://img/2.png"), "https://img/2.png")


@unittest.skipIf(request_painting is None, "aiohttp not installed")
class RequestPaintingTests(unittest.IsolatedAsyncioTestCase):
    async def test_json_response(self):
        session = FakeSession(FakeResponse(payload={"message": "https://img/1.png"}))

        result = await request_painting(session, "http://paint.test/paint", "a cat")

        self.assertEqual(result, "https://img/1.png")
        self.assertEqual(session.posts, [("http://paint.test/paint", {"data": "a cat"})])

    async def test_text_and_html_responses(self):
        for content_type in ("text/plain; charset=utf-8", "text/html"):
            with self.subTest(content_type=content_type):
                session = FakeSession(FakeResponse(content_type=content_type, text="https://img/3.png"))
                self.assertEqual(await request_painting(session, "http://paint.test", "a cat"), "https://img/3.png")

    async def test_errors(self):
        for response in (
            FakeResponse(status=502, payload={"message": "nope"}),
            FakeResponse(content_type="image/png"),
            FakeResponse(content_type=None),
        ):
            with self.subTest(status=response.status, headers=response.headers):
                with self.assertRaises(PaintRequestError):
                    await request_painting(FakeSession(response), "http://paint.test", "a cat")


@unittest.skipIf(request_painting is None, "aiohttp not installed")
class HandlePaintTests(unittest.IsolatedAsyncioTestCase):
    async def test_result_is_posted_to_originating_channel(self):
        channel = FakeChannel()
        bot = SimpleNamespace(get_channel=lambda channel_id: channel if channel_id == 77 else None)
        session = FakeSession(FakeResponse(payload={"message": "https://img/1.png"}))

        result = await handle_paint(_paint_action(), bot=bot, paint_url="http://paint.test", session=session)

        self.assertEqual(result, "https://img/1.png")
        self.assertEqual(channel.sent, ["https://img/1.png"])
        self.assertEqual(session.posts[0][1], {"data": "a lighthouse at dusk"})

    async def test_missing_metadata_or_prompt_is_ignored(self):
        channel = FakeChannel()
        bot = SimpleNamespace(get_channel=lambda channel_id: channel)
        session = FakeSession(FakeResponse(payload={"message": "unused"}))

        for action in (_paint_action(with_target=False), _paint_action(prompt="  ")):
            with self.subTest(metadata=sorted(action.metadata)):
                self.assertIsNone(
                    await handle_paint(action, bot=bot, paint_url="http://paint.test", session=session)
                )

        self.assertEqual(session.posts, [])
        self.assertEqual(channel.sent, [])

    async def test_failed_request_is_logged_not_raised(self):
        channel = FakeChannel()
        bot = SimpleNamespace(get_channel=lambda channel_id: channel)
        session = FakeSession(FakeResponse(status=500))

        result = await handle_paint(_paint_action(), bot=bot, paint_url="http://paint.test", session=session)

        self.assertIsNone(result)
        self.assertEqual(channel.sent, [])


if __name__ == "__main__":
    unittest.main()
