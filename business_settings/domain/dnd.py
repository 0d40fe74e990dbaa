"""
Do-Not-Disturb mode state machine.

States: inactive, active.

Transitions:
- inactive|active -> active   (enable; re-enabling restarts the window)
- active -> active            (extend; compounds from the stored expiry)
- active|inactive -> inactive (disable)
- active -> inactive          (expire; only once now >= expires_at)

Every transition returns a NEW BusinessSettings; inputs are never mutated.
Actor stamping is left to the caller so automatic expiry keeps the last
human modifier.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from business_settings.domain.entities import BusinessSettings, DndState
from business_settings.domain.errors import InvalidArgumentError, InvalidStateError
from business_settings.rules.models import DndRules

logger = logging.getLogger(__name__)

_CLEARED_DND_FIELDS: dict[str, Any] = {
    "dnd_mode_enabled": False,
    "dnd_mode_enabled_at": None,
    "dnd_mode_expires_at": None,
    "dnd_mode_reason": None,
    "dnd_mode_message": None,
    "dnd_extension_count": 0,
}


def state_of(settings: BusinessSettings) -> DndState:
    if settings.dnd_mode_enabled:
        return DndState.ACTIVE
    return DndState.INACTIVE


def remaining_hours(settings: BusinessSettings, now: datetime) -> float | None:
    """Hours until expiry, clamped at zero; None while inactive."""
    if not settings.dnd_mode_enabled or settings.dnd_mode_expires_at is None:
        return None
    remaining = (settings.dnd_mode_expires_at - now).total_seconds() / 3600
    return remaining if remaining > 0 else 0.0


def is_due(settings: BusinessSettings, now: datetime) -> bool:
    return (
        settings.dnd_mode_enabled
        and settings.dnd_mode_expires_at is not None
        and now >= settings.dnd_mode_expires_at
    )


class DndModeEngine:
    def __init__(self, rules: DndRules | None = None):
        self.rules = rules or DndRules()

    def enable(
        self,
        settings: BusinessSettings,
        duration_hours: int | None,
        now: datetime,
        reason: str | None = None,
        message: str | None = None,
    ) -> BusinessSettings:
        if duration_hours is None:
            duration_hours = self.rules.default_duration_hours

        if duration_hours <= 0:
            raise InvalidArgumentError(
                "dnd_mode_duration_hours", "DnD mode duration must be a positive number of hours"
            )
        if duration_hours > self.rules.max_duration_hours:
            raise InvalidArgumentError(
                "dnd_mode_duration_hours",
                f"DnD mode duration must be between 1 and {self.rules.max_duration_hours} hours",
            )

        if settings.dnd_mode_enabled:
            logger.info("Re-activating DnD mode for business %s", settings.business_id)

        return settings.model_copy(
            update={
                "dnd_mode_enabled": True,
                "dnd_mode_enabled_at": now,
                "dnd_mode_expires_at": now + timedelta(hours=duration_hours),
                "dnd_mode_reason": reason,
                "dnd_mode_message": message or self.rules.default_message,
                "dnd_extension_count": 0,
                "updated_at": now,
            }
        )

    def extend(
        self,
        settings: BusinessSettings,
        additional_hours: int,
        now: datetime,
    ) -> tuple[BusinessSettings, float]:
        """
        Push the expiry out by ``additional_hours``.

        The new expiry is computed from the stored expiry, even when that
        moment has already passed.

        Returns:
            Tuple of (updated settings, remaining hours from ``now``).
        """
        self.validate_extension_hours(additional_hours)

        if not settings.dnd_mode_enabled or settings.dnd_mode_expires_at is None:
            raise InvalidStateError(settings.business_id, "DnD mode is not currently enabled.")

        new_expiry = settings.dnd_mode_expires_at + timedelta(hours=additional_hours)
        updated = settings.model_copy(
            update={
                "dnd_mode_expires_at": new_expiry,
                "dnd_extension_count": settings.dnd_extension_count + 1,
                "updated_at": now,
            }
        )
        remaining = (new_expiry - now).total_seconds() / 3600
        return updated, remaining

    def validate_extension_hours(self, additional_hours: int) -> None:
        if additional_hours <= 0:
            raise InvalidArgumentError(
                "additional_hours", "Additional hours must be greater than zero"
            )
        if additional_hours > self.rules.max_extension_hours:
            raise InvalidArgumentError(
                "additional_hours",
                f"Additional hours must be between 1 and {self.rules.max_extension_hours}",
            )

    def disable(self, settings: BusinessSettings, now: datetime) -> BusinessSettings:
        return settings.model_copy(update={**_CLEARED_DND_FIELDS, "updated_at": now})

    def expire(self, settings: BusinessSettings, now: datetime) -> BusinessSettings:
        if not settings.dnd_mode_enabled:
            raise InvalidStateError(settings.business_id, "DnD mode is not active")
        if not is_due(settings, now):
            raise InvalidStateError(
                settings.business_id,
                f"DnD mode does not expire until {settings.dnd_mode_expires_at}",
            )
        # Keeps modified_by_user_id: automatic transitions have no actor
        return settings.model_copy(update={**_CLEARED_DND_FIELDS, "updated_at": now})
