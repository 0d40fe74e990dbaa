from datetime import datetime
from typing import Protocol
from uuid import UUID

from business_settings.domain.entities import BusinessSettings, RepSettings


class SettingsStorePort(Protocol):
    """
    Persistence for BusinessSettings and RepSettings.

    Updates are conditional: the write only lands when the stored row still
    has ``expected_version``. On success the returned record carries
    ``expected_version + 1``; otherwise ConcurrentModificationError is raised.
    """

    # --- Business settings ---

    def get_business_settings(self, business_id: UUID) -> BusinessSettings | None:
        ...

    def add_business_settings(self, settings: BusinessSettings) -> BusinessSettings:
        """Insert unless a row for the business exists; return the stored row."""
        ...

    def update_business_settings(
        self, settings: BusinessSettings, expected_version: int
    ) -> BusinessSettings:
        ...

    def find_expired_dnd_settings(self, now_utc: datetime) -> list[BusinessSettings]:
        """Rows with DnD enabled and dnd_mode_expires_at <= now_utc."""
        ...

    # --- Rep settings ---

    def get_rep_settings(self, business_rep_id: UUID) -> RepSettings | None:
        ...

    def add_rep_settings(self, settings: RepSettings) -> RepSettings:
        """Insert unless a row for the rep exists; return the stored row."""
        ...

    def update_rep_settings(self, settings: RepSettings, expected_version: int) -> RepSettings:
        ...
