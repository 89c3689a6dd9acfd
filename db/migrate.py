from __future__ import annotations

import hashlib
import importlib.util
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


MIGRATION_RE = re.compile(r"^(\d{4})_([a-zA-Z0-9_]+)\.py$")
DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


@dataclass(frozen=True, slots=True)
class Migration:
    version: str
    name: str
    path: Path

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.path.read_bytes()).hexdigest()


def discover_migrations(migrations_dir: str | Path) -> list[Migration]:
    base = Path(migrations_dir)
    if not base.exists():
        raise RuntimeError(f"Migrations directory not found: {migrations_dir}")
    out: list[Migration] = []
    for p in sorted(base.iterdir()):
        m = MIGRATION_RE.match(p.name) if p.is_file() else None
        if m:
            out.append(Migration(version=m.group(1), name=m.group(2), path=p))
    return out


def _ensure_migration_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            checksum TEXT NOT NULL,
            applied_at_utc TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _run_upgrade(conn: sqlite3.Connection, migration: Migration) -> None:
    spec = importlib.util.spec_from_file_location(f"glandon_migration_{migration.path.stem}", str(migration.path))
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Could not load migration module: {migration.path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    upgrade = getattr(module, "upgrade", None)
    if not callable(upgrade):
        raise RuntimeError(f"Migration missing upgrade(conn): {migration.path}")
    upgrade(conn)


def apply_sqlite_migrations(conn: sqlite3.Connection, migrations_dir: str | Path = DEFAULT_MIGRATIONS_DIR) -> list[str]:
    """Apply pending migrations in version order; returns the versions applied by this call."""
    _ensure_migration_table(conn)
    applied = {
        str(version): (str(name), str(checksum))
        for version, name, checksum in conn.execute("SELECT version, name, checksum FROM schema_migrations")
    }

    newly_applied: list[str] = []
    for migration in discover_migrations(migrations_dir):
        existing = applied.get(migration.version)
        if existing:
            if existing != (migration.name, migration.checksum):
                raise RuntimeError(
                    f"Migration version {migration.version} already applied with different content "
                    f"(existing name={existing[0]}, file name={migration.name})."
                )
            continue

        print(f"[DB] Applying migration {migration.version}_{migration.name}")
        _run_upgrade(conn, migration)
        conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, applied_at_utc) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, datetime.now(timezone.utc).isoformat()),
        )
        conn.commit()
        newly_applied.append(migration.version)
    return newly_applied


def open_database(db_path: str, migrations_dir: str | Path = DEFAULT_MIGRATIONS_DIR) -> sqlite3.Connection:
    # check_same_thread=False because store calls run through asyncio.to_thread
    conn = sqlite3.connect(db_path, check_same_thread=False)
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    apply_sqlite_migrations(conn, migrations_dir)
    return conn
