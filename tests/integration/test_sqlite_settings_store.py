"""
SQLite settings store tests against a migrated temporary database.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from business_settings.adapters.sqlite.repos import SQLiteSettingsStore
from business_settings.components.settings import (
    SettingsService,
    UpdateBusinessSettingsRequest,
    UpdateRepSettingsRequest,
)
from business_settings.domain.entities import (
    AutoResponseTemplates,
    BusinessSettings,
    NotificationPreferences,
    RepSettings,
)
from business_settings.domain.errors import ConcurrentModificationError

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def active_settings(business_id=None, expires_in_hours: float = 10) -> BusinessSettings:
    return BusinessSettings(
        business_id=business_id or uuid4(),
        dnd_mode_enabled=True,
        dnd_mode_enabled_at=NOW,
        dnd_mode_expires_at=NOW + timedelta(hours=expires_in_hours),
        dnd_mode_reason="Closed",
        dnd_mode_message="Back soon",
        created_at=NOW,
        updated_at=NOW,
    )


class TestBusinessSettingsStore:
    def test_add_and_get(self, sqlite_store: SQLiteSettingsStore) -> None:
        settings = active_settings()
        saved = sqlite_store.add_business_settings(settings)

        assert saved == settings
        assert sqlite_store.get_business_settings(settings.business_id) == settings

    def test_get_missing(self, sqlite_store: SQLiteSettingsStore) -> None:
        assert sqlite_store.get_business_settings(uuid4()) is None

    def test_add_is_idempotent_per_business(self, sqlite_store: SQLiteSettingsStore) -> None:
        business_id = uuid4()
        first = sqlite_store.add_business_settings(BusinessSettings(business_id=business_id))
        second = sqlite_store.add_business_settings(BusinessSettings(business_id=business_id))

        assert second.id == first.id

    def test_update_bumps_version(self, sqlite_store: SQLiteSettingsStore) -> None:
        stored = sqlite_store.add_business_settings(BusinessSettings(business_id=uuid4()))
        changed = stored.model_copy(update={"reviews_private": True, "reviews_private_enabled_at": NOW})

        saved = sqlite_store.update_business_settings(changed, expected_version=stored.version)

        assert saved.version == stored.version + 1
        reloaded = sqlite_store.get_business_settings(stored.business_id)
        assert reloaded.reviews_private is True
        assert reloaded.version == saved.version

    def test_stale_update_rejected(self, sqlite_store: SQLiteSettingsStore) -> None:
        stored = sqlite_store.add_business_settings(BusinessSettings(business_id=uuid4()))
        sqlite_store.update_business_settings(
            stored.model_copy(update={"reviews_private": True}), expected_version=stored.version
        )

        with pytest.raises(ConcurrentModificationError):
            sqlite_store.update_business_settings(
                stored.model_copy(update={"private_reviews_reason": "late"}),
                expected_version=stored.version,
            )

        reloaded = sqlite_store.get_business_settings(stored.business_id)
        assert reloaded.private_reviews_reason is None

    def test_find_expired(self, sqlite_store: SQLiteSettingsStore) -> None:
        due = sqlite_store.add_business_settings(active_settings(expires_in_hours=1))
        at_boundary = sqlite_store.add_business_settings(active_settings(expires_in_hours=2))
        sqlite_store.add_business_settings(active_settings(expires_in_hours=3))
        sqlite_store.add_business_settings(BusinessSettings(business_id=uuid4()))

        found = sqlite_store.find_expired_dnd_settings(NOW + timedelta(hours=2))

        assert [s.business_id for s in found] == [due.business_id, at_boundary.business_id]

    def test_find_expired_normalizes_timezones(self, sqlite_store: SQLiteSettingsStore) -> None:
        settings = active_settings(expires_in_hours=1)
        sqlite_store.add_business_settings(settings)

        # Same instant expressed at UTC+02:00
        plus_two = timezone(timedelta(hours=2))
        now_local = (NOW + timedelta(hours=1)).astimezone(plus_two)

        assert len(sqlite_store.find_expired_dnd_settings(now_local)) == 1

    def test_timestamps_round_trip_as_utc(self, sqlite_store: SQLiteSettingsStore) -> None:
        settings = active_settings()
        sqlite_store.add_business_settings(settings)

        reloaded = sqlite_store.get_business_settings(settings.business_id)

        assert reloaded.dnd_mode_expires_at == settings.dnd_mode_expires_at
        assert reloaded.dnd_mode_expires_at.tzinfo is not None

    def test_negative_extension_count_rejected_by_schema(self, sqlite_db_path: str) -> None:
        conn = sqlite3.connect(sqlite_db_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO business_settings (id, business_id, dnd_extension_count, "
                    "created_at, updated_at) VALUES (?, ?, -1, 'x', 'x')",
                    (str(uuid4()), str(uuid4())),
                )
        finally:
            conn.close()


class TestRepSettingsStore:
    def test_structured_fields_round_trip(self, sqlite_store: SQLiteSettingsStore) -> None:
        settings = RepSettings(
            business_rep_id=uuid4(),
            notification_preferences=NotificationPreferences(email=False, whatsapp=True),
            dark_mode=True,
            auto_response_templates=AutoResponseTemplates(positive="Thank you!"),
            disabled_access_usernames=["carol"],
        )
        sqlite_store.add_rep_settings(settings)

        assert sqlite_store.get_rep_settings(settings.business_rep_id) == settings

    def test_add_is_idempotent_per_rep(self, sqlite_store: SQLiteSettingsStore) -> None:
        rep = uuid4()
        first = sqlite_store.add_rep_settings(RepSettings(business_rep_id=rep))
        second = sqlite_store.add_rep_settings(RepSettings(business_rep_id=rep, dark_mode=True))

        assert second.id == first.id
        assert second.dark_mode is False

    def test_stale_update_rejected(self, sqlite_store: SQLiteSettingsStore) -> None:
        stored = sqlite_store.add_rep_settings(RepSettings(business_rep_id=uuid4()))
        sqlite_store.update_rep_settings(
            stored.model_copy(update={"dark_mode": True}), expected_version=stored.version
        )

        with pytest.raises(ConcurrentModificationError):
            sqlite_store.update_rep_settings(stored, expected_version=stored.version)


class TestServiceOverSQLite:
    def test_full_dnd_lifecycle(self, sqlite_store, directory, clock, business_id, parent_rep_id, support_id):
        service = SettingsService(sqlite_store, directory, clock)
        t0 = clock.now_utc()

        service.update_business_settings(
            business_id,
            UpdateBusinessSettingsRequest.from_payload(
                {"dndModeEnabled": True, "dndModeDurationHours": 48}
            ),
            parent_rep_id,
        )
        clock.advance(hours=10)
        view = service.extend_dnd_mode(business_id, 24, support_id)
        assert view.settings.dnd_mode_expires_at == t0 + timedelta(hours=72)

        clock.set(t0 + timedelta(hours=72, minutes=1))
        assert service.process_expired_dnd_modes().expired == 1
        assert service.process_expired_dnd_modes().total_due == 0

        settings = sqlite_store.get_business_settings(business_id)
        assert settings.dnd_mode_enabled is False
        assert settings.dnd_extension_count == 0
        assert settings.modified_by_user_id == support_id

    def test_rep_update_persists(self, sqlite_store, directory, clock):
        service = SettingsService(sqlite_store, directory, clock)
        rep = uuid4()

        service.update_rep_settings(
            rep,
            UpdateRepSettingsRequest.from_payload(
                {"notificationPreferences": {"email": False, "whatsapp": True, "inApp": True}}
            ),
            rep,
        )

        stored = sqlite_store.get_rep_settings(rep)
        assert stored.notification_preferences.whatsapp is True
        assert stored.notification_preferences.email is False
        assert stored.version == 2
