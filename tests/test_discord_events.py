from __future__ import annotations

import unittest
from dataclasses import asdict
from types import SimpleNamespace

from controller.models import ChatEvent
from controller.models import Perception
from controller.models import perception_metadata
from misc.discord_events import build_chatted_perception
from misc.discord_events import chat_event_from_message


def _message(**overrides):
    fields = dict(
        id=555,
        content="hello <@42>",
        channel=SimpleNamespace(id=77),
        guild=SimpleNamespace(id=9),
        author=SimpleNamespace(id=11, name="alice", display_name="Alice A.", bot=False),
        mentions=[SimpleNamespace(id=42)],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


class ChatEventConversionTests(unittest.TestCase):
    def test_message_fields_are_copied(self):
        event = chat_event_from_message(_message())

        self.assertEqual(
            event,
            ChatEvent(
                message_id=555,
                channel_id=77,
                guild_id=9,
                user_id=11,
                user_display_name="Alice A.",
                at_mention_username="alice",
                replied_to_user_id=42,
                is_host=False,
            ),
        )

    def test_dm_without_mentions_or_display_name(self):
        message = _message(
            guild=None,
            mentions=[],
            author=SimpleNamespace(id=12, name="bob", display_name=None, bot=True),
        )

        event = chat_event_from_message(message)

        self.assertIsNone(event.guild_id)
        self.assertIsNone(event.replied_to_user_id)
        self.assertEqual(event.user_display_name, "bob")
        self.assertTrue(event.is_host)

    def test_event_dict_round_trip(self):
        event = chat_event_from_message(_message())
        self.assertEqual(ChatEvent.from_dict(asdict(event)), event)


class ChattedPerceptionTests(unittest.TestCase):
    def test_perception_carries_event_and_host_id(self):
        perception = build_chatted_perception(_message(), bot_user_id=42)

        self.assertEqual(perception.action, "chatted")
        self.assertEqual(perception.name, "alice")
        self.assertEqual(perception.content, "hello <@42>")
        meta = perception_metadata(perception)
        self.assertEqual(meta.user_name, "alice")
        self.assertEqual(meta.host_user_id, 42)
        self.assertEqual(meta.chat_event.message_id, 555)

    def test_metadata_accepts_serialized_event(self):
        event = chat_event_from_message(_message())
        perception = Perception(
            action="chatted",
            content="hi",
            name="alice",
            metadata={"discord_event": asdict(event)},
        )

        meta = perception_metadata(perception)

        self.assertEqual(meta.chat_event, event)
        self.assertIsNone(meta.host_user_id)

    def test_missing_perception_has_empty_metadata(self):
        meta = perception_metadata(None)
        self.assertEqual(meta.user_name, "")
        self.assertIsNone(meta.chat_event)


if __name__ == "__main__":
    unittest.main()
