"""
In-memory settings store.

Used by tests and the dev shell. Honours the same version check as the
SQLite store, so race behaviour can be exercised without a database.
"""

from __future__ import annotations

import threading
from datetime import datetime
from uuid import UUID

from business_settings.domain.entities import BusinessSettings, RepSettings
from business_settings.domain.errors import ConcurrentModificationError


class InMemorySettingsStore:
    def __init__(self) -> None:
        self._business: dict[UUID, BusinessSettings] = {}
        self._reps: dict[UUID, RepSettings] = {}
        self._lock = threading.Lock()

    # --- Business settings ---

    def get_business_settings(self, business_id: UUID) -> BusinessSettings | None:
        with self._lock:
            return self._business.get(business_id)

    def add_business_settings(self, settings: BusinessSettings) -> BusinessSettings:
        with self._lock:
            existing = self._business.get(settings.business_id)
            if existing is not None:
                return existing
            self._business[settings.business_id] = settings
            return settings

    def update_business_settings(
        self, settings: BusinessSettings, expected_version: int
    ) -> BusinessSettings:
        with self._lock:
            stored = self._business.get(settings.business_id)
            if stored is None or stored.id != settings.id or stored.version != expected_version:
                raise ConcurrentModificationError(settings.id, expected_version)
            saved = settings.model_copy(update={"version": expected_version + 1})
            self._business[settings.business_id] = saved
            return saved

    def find_expired_dnd_settings(self, now_utc: datetime) -> list[BusinessSettings]:
        with self._lock:
            due = [
                s
                for s in self._business.values()
                if s.dnd_mode_enabled
                and s.dnd_mode_expires_at is not None
                and s.dnd_mode_expires_at <= now_utc
            ]
        return sorted(due, key=lambda s: s.dnd_mode_expires_at)

    # --- Rep settings ---

    def get_rep_settings(self, business_rep_id: UUID) -> RepSettings | None:
        with self._lock:
            return self._reps.get(business_rep_id)

    def add_rep_settings(self, settings: RepSettings) -> RepSettings:
        with self._lock:
            existing = self._reps.get(settings.business_rep_id)
            if existing is not None:
                return existing
            self._reps[settings.business_rep_id] = settings
            return settings

    def update_rep_settings(self, settings: RepSettings, expected_version: int) -> RepSettings:
        with self._lock:
            stored = self._reps.get(settings.business_rep_id)
            if stored is None or stored.id != settings.id or stored.version != expected_version:
                raise ConcurrentModificationError(settings.id, expected_version)
            saved = settings.model_copy(update={"version": expected_version + 1})
            self._reps[settings.business_rep_id] = saved
            return saved
