"""
SQL file migrations for the settings database.

Each ``NNNN_name.sql`` file holds an ``-- Up`` section and an optional
``-- Down`` section; only the Up part is executed. Applied files are
recorded with a checksum of their Up script so an edited migration is
reported instead of silently skipped.
"""

from __future__ import annotations

import hashlib
import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class MigrationError(RuntimeError):
    """A migration could not be applied or no longer matches its record."""


@dataclass(frozen=True)
class Migration:
    name: str
    up_sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.up_sql.encode("utf-8")).hexdigest()

    @classmethod
    def from_file(cls, path: Path) -> Migration:
        return cls(name=path.name, up_sql=_split_up_section(path.read_text(encoding="utf-8")))


def _split_up_section(content: str) -> str:
    up, _, _ = content.partition(DOWN_MARKER)
    return up


class SQLiteMigrator:
    """Applies pending ``migrations/*.sql`` files in filename order."""

    def __init__(self, db_path: str, migrations_dir: str | Path):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def discover(self) -> list[Migration]:
        return [Migration.from_file(p) for p in sorted(self.migrations_dir.glob("*.sql"))]

    def applied_migrations(self) -> dict[str, str]:
        """Map of applied migration name to recorded checksum."""
        with closing(sqlite3.connect(self.db_path)) as conn:
            self._ensure_history(conn)
            return self._history(conn)

    def pending_migrations(self) -> list[str]:
        applied = self.applied_migrations()
        return [m.name for m in self.discover() if m.name not in applied]

    def run_migrations(self) -> list[str]:
        """
        Apply every pending migration.

        Returns:
            Names of the migrations applied by this call, in order.

        Raises:
            MigrationError: a script failed (its changes are rolled back), or an
                already-applied file was edited afterwards
        """
        applied_now: list[str] = []
        with closing(sqlite3.connect(self.db_path)) as conn:
            self._ensure_history(conn)
            history = self._history(conn)

            for migration in self.discover():
                recorded = history.get(migration.name)
                if recorded is None:
                    logger.info("Applying migration %s", migration.name)
                    self._apply(conn, migration)
                    applied_now.append(migration.name)
                elif recorded != migration.checksum:
                    raise MigrationError(
                        f"Migration {migration.name} was modified after it was applied"
                    )

        if applied_now:
            logger.info("Applied %d migration(s)", len(applied_now))
        else:
            logger.info("Schema up to date")
        return applied_now

    def _ensure_history(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                checksum TEXT NOT NULL,
                applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        conn.commit()

    def _history(self, conn: sqlite3.Connection) -> dict[str, str]:
        rows = conn.execute("SELECT name, checksum FROM schema_migrations").fetchall()
        return {name: checksum for name, checksum in rows}

    def _apply(self, conn: sqlite3.Connection, migration: Migration) -> None:
        # executescript commits any open transaction first, so the script and
        # its history row are wrapped in one explicit transaction
        try:
            conn.executescript(f"BEGIN;\n{migration.up_sql}\n;")
            conn.execute(
                "INSERT INTO schema_migrations (name, checksum) VALUES (?, ?)",
                (migration.name, migration.checksum),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise MigrationError(f"Migration {migration.name} failed: {e}") from e
