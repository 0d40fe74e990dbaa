import json
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from business_settings.domain.entities import (
    AutoResponseTemplates,
    BusinessSettings,
    NotificationPreferences,
    RepSettings,
)
from business_settings.domain.errors import ConcurrentModificationError


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _ts(value: datetime | None) -> str | None:
    """Fixed-width UTC ISO string so SQL string comparison orders correctly."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def _parse_ts(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _uuid_or_none(value: str | None) -> UUID | None:
    return UUID(value) if value else None


class SQLiteSettingsStore:
    """
    SQLite adapter for business and rep settings.

    Updates are single ``UPDATE ... WHERE id = ? AND version = ?`` statements,
    so a write based on a stale read never lands.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    # --- Business settings ---

    def get_business_settings(self, business_id: UUID) -> BusinessSettings | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM business_settings WHERE business_id = ?", (str(business_id),)
            ).fetchone()
            if not row:
                return None
            return self._map_business_row(row)
        finally:
            conn.close()

    def add_business_settings(self, settings: BusinessSettings) -> BusinessSettings:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO business_settings (
                    id, business_id, reviews_private, reviews_private_enabled_at,
                    private_reviews_reason, dnd_mode_enabled, dnd_mode_enabled_at,
                    dnd_mode_expires_at, dnd_mode_reason, dnd_extension_count,
                    dnd_mode_message, created_at, updated_at, modified_by_user_id, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(business_id) DO NOTHING
            """,
                (
                    str(settings.id),
                    str(settings.business_id),
                    *self._business_values(settings),
                    _ts(settings.created_at),
                    _ts(settings.updated_at),
                    str(settings.modified_by_user_id) if settings.modified_by_user_id else None,
                    settings.version,
                ),
            )
            conn.commit()

            # Concurrent first access: whichever insert won is the record
            row = conn.execute(
                "SELECT * FROM business_settings WHERE business_id = ?",
                (str(settings.business_id),),
            ).fetchone()
            return self._map_business_row(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def update_business_settings(
        self, settings: BusinessSettings, expected_version: int
    ) -> BusinessSettings:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE business_settings SET
                    reviews_private = ?,
                    reviews_private_enabled_at = ?,
                    private_reviews_reason = ?,
                    dnd_mode_enabled = ?,
                    dnd_mode_enabled_at = ?,
                    dnd_mode_expires_at = ?,
                    dnd_mode_reason = ?,
                    dnd_extension_count = ?,
                    dnd_mode_message = ?,
                    updated_at = ?,
                    modified_by_user_id = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
            """,
                (
                    *self._business_values(settings),
                    _ts(settings.updated_at),
                    str(settings.modified_by_user_id) if settings.modified_by_user_id else None,
                    str(settings.id),
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise ConcurrentModificationError(settings.id, expected_version)
            conn.commit()
            return settings.model_copy(update={"version": expected_version + 1})
        except ConcurrentModificationError:
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def find_expired_dnd_settings(self, now_utc: datetime) -> list[BusinessSettings]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM business_settings
                WHERE dnd_mode_enabled = 1
                  AND dnd_mode_expires_at IS NOT NULL
                  AND dnd_mode_expires_at <= ?
                ORDER BY dnd_mode_expires_at ASC
            """,
                (_ts(now_utc),),
            ).fetchall()
            return [self._map_business_row(r) for r in rows]
        finally:
            conn.close()

    def _business_values(self, settings: BusinessSettings) -> tuple[Any, ...]:
        return (
            1 if settings.reviews_private else 0,
            _ts(settings.reviews_private_enabled_at),
            settings.private_reviews_reason,
            1 if settings.dnd_mode_enabled else 0,
            _ts(settings.dnd_mode_enabled_at),
            _ts(settings.dnd_mode_expires_at),
            settings.dnd_mode_reason,
            settings.dnd_extension_count,
            settings.dnd_mode_message,
        )

    def _map_business_row(self, row: dict[str, Any]) -> BusinessSettings:
        return BusinessSettings(
            id=UUID(row["id"]),
            business_id=UUID(row["business_id"]),
            reviews_private=bool(row["reviews_private"]),
            reviews_private_enabled_at=_parse_ts(row["reviews_private_enabled_at"]),
            private_reviews_reason=row["private_reviews_reason"],
            dnd_mode_enabled=bool(row["dnd_mode_enabled"]),
            dnd_mode_enabled_at=_parse_ts(row["dnd_mode_enabled_at"]),
            dnd_mode_expires_at=_parse_ts(row["dnd_mode_expires_at"]),
            dnd_mode_reason=row["dnd_mode_reason"],
            dnd_extension_count=row["dnd_extension_count"],
            dnd_mode_message=row["dnd_mode_message"],
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
            modified_by_user_id=_uuid_or_none(row["modified_by_user_id"]),
            version=row["version"],
        )

    # --- Rep settings ---

    def get_rep_settings(self, business_rep_id: UUID) -> RepSettings | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM business_rep_settings WHERE business_rep_id = ?",
                (str(business_rep_id),),
            ).fetchone()
            if not row:
                return None
            return self._map_rep_row(row)
        finally:
            conn.close()

    def add_rep_settings(self, settings: RepSettings) -> RepSettings:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO business_rep_settings (
                    id, business_rep_id, notification_preferences_json, dark_mode,
                    auto_response_templates_json, disabled_access_usernames_json,
                    created_at, updated_at, modified_by_user_id, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(business_rep_id) DO NOTHING
            """,
                (
                    str(settings.id),
                    str(settings.business_rep_id),
                    *self._rep_values(settings),
                    _ts(settings.created_at),
                    _ts(settings.updated_at),
                    str(settings.modified_by_user_id) if settings.modified_by_user_id else None,
                    settings.version,
                ),
            )
            conn.commit()

            row = conn.execute(
                "SELECT * FROM business_rep_settings WHERE business_rep_id = ?",
                (str(settings.business_rep_id),),
            ).fetchone()
            return self._map_rep_row(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def update_rep_settings(self, settings: RepSettings, expected_version: int) -> RepSettings:
        conn = self._get_conn()
        try:
            # business_rep_id is immutable and never part of the SET list
            cursor = conn.execute(
                """
                UPDATE business_rep_settings SET
                    notification_preferences_json = ?,
                    dark_mode = ?,
                    auto_response_templates_json = ?,
                    disabled_access_usernames_json = ?,
                    updated_at = ?,
                    modified_by_user_id = ?,
                    version = version + 1
                WHERE id = ? AND version = ?
            """,
                (
                    *self._rep_values(settings),
                    _ts(settings.updated_at),
                    str(settings.modified_by_user_id) if settings.modified_by_user_id else None,
                    str(settings.id),
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise ConcurrentModificationError(settings.id, expected_version)
            conn.commit()
            return settings.model_copy(update={"version": expected_version + 1})
        except ConcurrentModificationError:
            raise
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _rep_values(self, settings: RepSettings) -> tuple[Any, ...]:
        return (
            json.dumps(settings.notification_preferences.model_dump()),
            1 if settings.dark_mode else 0,
            json.dumps(settings.auto_response_templates.model_dump()),
            json.dumps(settings.disabled_access_usernames),
        )

    def _map_rep_row(self, row: dict[str, Any]) -> RepSettings:
        return RepSettings(
            id=UUID(row["id"]),
            business_rep_id=UUID(row["business_rep_id"]),
            notification_preferences=NotificationPreferences.model_validate(
                json.loads(row["notification_preferences_json"])
            ),
            dark_mode=bool(row["dark_mode"]),
            auto_response_templates=AutoResponseTemplates.model_validate(
                json.loads(row["auto_response_templates_json"])
            ),
            disabled_access_usernames=json.loads(row["disabled_access_usernames_json"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
            modified_by_user_id=_uuid_or_none(row["modified_by_user_id"]),
            version=row["version"],
        )
