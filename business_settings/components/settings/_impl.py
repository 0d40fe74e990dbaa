"""
SettingsService - Business and representative settings use cases.

Orchestrates authorization, the DnD state machine and the settings store.

Key behaviors:
- GET always returns settings (default row created on first access)
- Business settings are writable only by the parent representative
- Rep settings are writable only by their owning representative
- DnD extension is reserved for support actors and compounds from the
  stored expiry
- Every write is a single conditional update on the row's version, so a
  human edit racing the expiry sweep cannot both land on stale state
- The expiry sweep isolates failures per business
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from business_settings.domain import dnd
from business_settings.domain.dnd import DndModeEngine
from business_settings.domain.entities import (
    AutoResponseTemplates,
    BusinessSettings,
    BusinessSettingsView,
    DndStatus,
    EffectiveSettings,
    NotificationPreferences,
    PrivateReviewsStatus,
    RepSettings,
)
from business_settings.domain.errors import (
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
)
from business_settings.domain.patch import SetTo, is_set, value_or
from business_settings.domain.policy import AuthorizationPolicy
from business_settings.ports.clock import ClockPort
from business_settings.ports.directory import RepresentativeDirectoryPort
from business_settings.ports.repo import SettingsStorePort
from business_settings.rules.models import DndRules, NotificationDefaults, PrivateReviewsRules

from .models import (
    ExpiryBatchResult,
    ExpiryFailure,
    UpdateBusinessSettingsRequest,
    UpdateRepSettingsRequest,
)

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Settings service.

    Provides:
    - Business settings read/partial update (parent rep only)
    - DnD extension (support only) and the expiry sweep
    - Rep settings read/partial update (owner only)
    - Read-only DnD and private reviews status
    - Effective settings composition
    """

    def __init__(
        self,
        store: SettingsStorePort,
        directory: RepresentativeDirectoryPort,
        clock: ClockPort | None = None,
        dnd_rules: DndRules | None = None,
        notification_defaults: NotificationDefaults | None = None,
        private_reviews_rules: PrivateReviewsRules | None = None,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        """
        Initialize settings service.

        Args:
            store: Settings store
            directory: Representative directory (parent rep, support role, rep business)
            clock: Optional clock; system UTC time when omitted
            dnd_rules: DnD limits and default message
            notification_defaults: Notification preferences for new rep rows
            private_reviews_rules: Consumer-facing private reviews message
            policy: Optional policy override; built from ``directory`` when omitted
        """
        self._store = store
        self._directory = directory
        self._clock = clock
        self._engine = DndModeEngine(dnd_rules)
        self._notification_defaults = notification_defaults or NotificationDefaults()
        self._private_reviews_rules = private_reviews_rules or PrivateReviewsRules()
        self._policy = policy or AuthorizationPolicy(directory)

    def _now(self) -> datetime:
        if self._clock:
            return self._clock.now_utc()
        return datetime.now(UTC)

    # --- Business settings ---

    def get_business_settings(self, business_id: UUID) -> BusinessSettingsView:
        """
        Get business settings, creating the default row if none exists.

        Repeated calls return the same record id.
        """
        settings = self._load_or_create_business_settings(business_id)
        return self._project(settings, self._now())

    def update_business_settings(
        self,
        business_id: UUID,
        request: UpdateBusinessSettingsRequest,
        actor_id: UUID,
    ) -> BusinessSettingsView:
        """
        Apply a partial update to business settings.

        Authorization runs before anything else, so a non-parent caller is
        refused even with an empty request and no row is created.
        An authorized empty request returns the current settings without a
        write.

        Raises:
            ForbiddenError: actor is not the parent representative
            InvalidArgumentError: out-of-range duration or malformed request
            ConcurrentModificationError: the row changed since it was read
        """
        if not self._policy.can_modify_business_settings(actor_id, business_id):
            raise ForbiddenError(
                actor_id,
                "Only the parent business representative can modify business settings.",
            )

        _validate_business_request(request)

        current = self._load_or_create_business_settings(business_id)
        now = self._now()

        if request.is_empty():
            # Nothing to apply: no write, no actor stamp
            return self._project(current, now)

        updated = self._apply_reviews_privacy(current, request, now)
        updated = self._apply_dnd_changes(updated, request, now)
        updated = updated.model_copy(update={"modified_by_user_id": actor_id, "updated_at": now})

        saved = self._store.update_business_settings(updated, expected_version=current.version)
        return self._project(saved, now)

    def extend_dnd_mode(
        self,
        business_id: UUID,
        additional_hours: int,
        actor_id: UUID,
    ) -> BusinessSettingsView:
        """
        Extend an active DnD window.

        Checks run in order: hours, state, actor. A business without a
        settings row counts as inactive and no row is created.

        Raises:
            InvalidArgumentError: hours not in 1..max_extension_hours
            InvalidStateError: DnD mode is not active
            ForbiddenError: actor is not a support actor
        """
        self._engine.validate_extension_hours(additional_hours)

        current = self._store.get_business_settings(business_id)
        if current is None or not current.dnd_mode_enabled:
            raise InvalidStateError(business_id, "DnD mode is not currently enabled.")

        if not self._policy.can_extend_dnd_mode(actor_id):
            raise ForbiddenError(actor_id, "Only support users can extend DnD mode.")

        now = self._now()
        extended, remaining = self._engine.extend(current, additional_hours, now)
        extended = extended.model_copy(update={"modified_by_user_id": actor_id, "updated_at": now})

        saved = self._store.update_business_settings(extended, expected_version=current.version)
        logger.info(
            "Extended DnD mode for business %s by %dh (extension #%d, %.1fh remaining)",
            business_id,
            additional_hours,
            saved.dnd_extension_count,
            remaining,
        )
        return self._project(saved, now)

    def get_dnd_status(self, business_id: UUID) -> DndStatus:
        """Read-only DnD summary; never creates a row."""
        max_extensions = self._engine.rules.max_extensions
        settings = self._store.get_business_settings(business_id)
        if settings is None:
            return DndStatus(
                business_id=business_id, is_enabled=False, max_extensions=max_extensions
            )

        # Advisory only: extend_dnd_mode is gated by the support role, not this cap
        can_extend = settings.dnd_mode_enabled and settings.dnd_extension_count < max_extensions

        return DndStatus(
            business_id=business_id,
            is_enabled=settings.dnd_mode_enabled,
            enabled_at=settings.dnd_mode_enabled_at,
            expires_at=settings.dnd_mode_expires_at,
            remaining_hours=dnd.remaining_hours(settings, self._now()),
            extension_count=settings.dnd_extension_count,
            max_extensions=max_extensions,
            can_extend=can_extend,
            reason=settings.dnd_mode_reason,
            message=settings.dnd_mode_message,
        )

    def get_private_reviews_status(self, business_id: UUID) -> PrivateReviewsStatus:
        """Read-only private reviews summary; never creates a row."""
        settings = self._store.get_business_settings(business_id)
        if settings is None or not settings.reviews_private:
            return PrivateReviewsStatus(business_id=business_id, is_enabled=False)

        return PrivateReviewsStatus(
            business_id=business_id,
            is_enabled=True,
            enabled_at=settings.reviews_private_enabled_at,
            reason=settings.private_reviews_reason,
            consumer_message=self._private_reviews_rules.consumer_message,
        )

    def process_expired_dnd_modes(
        self,
        should_stop: Callable[[], bool] | None = None,
    ) -> ExpiryBatchResult:
        """
        Deactivate every business whose DnD window has lapsed.

        Each business is cleared by its own conditional write. A failure on
        one row is logged and counted; remaining rows are still processed.
        Rows already inactive are never returned by the store query, so a
        second run over the same data changes nothing.

        Args:
            should_stop: Polled between rows; when it returns True the rest
                of the batch is abandoned untouched.
        """
        now = self._now()
        due = self._store.find_expired_dnd_settings(now)
        result = ExpiryBatchResult(total_due=len(due))

        for index, settings in enumerate(due):
            if should_stop is not None and should_stop():
                result.abandoned = len(due) - index
                logger.info("Expiry sweep stopping; %d businesses left for next run", result.abandoned)
                break

            try:
                expired = self._engine.expire(settings, now)
                self._store.update_business_settings(expired, expected_version=settings.version)
            except Exception as e:
                result.failed += 1
                result.failures.append(ExpiryFailure(business_id=settings.business_id, error=str(e)))
                logger.exception("Failed to expire DnD mode for business %s", settings.business_id)
                continue

            result.expired += 1
            result.expired_business_ids.append(settings.business_id)
            logger.info("DnD mode expired for business %s", settings.business_id)

        return result

    # --- Rep settings ---

    def get_rep_settings(self, business_rep_id: UUID) -> RepSettings:
        """Get rep settings, creating the default row if none exists."""
        return self._load_or_create_rep_settings(business_rep_id)

    def update_rep_settings(
        self,
        business_rep_id: UUID,
        request: UpdateRepSettingsRequest,
        actor_id: UUID,
    ) -> RepSettings:
        """
        Apply a partial update to a representative's own settings.

        Raises:
            ForbiddenError: actor is not the owning representative
            InvalidArgumentError: malformed request
        """
        if not self._policy.can_modify_rep_settings(actor_id, business_rep_id):
            raise ForbiddenError(actor_id, "You can only modify your own settings.")

        if isinstance(request.dark_mode, SetTo) and request.dark_mode.value is None:
            raise InvalidArgumentError("dark_mode", "must be true or false")

        current = self._load_or_create_rep_settings(business_rep_id)
        now = self._now()

        updates: dict[str, Any] = {"modified_by_user_id": actor_id, "updated_at": now}

        if isinstance(request.notification_preferences, SetTo):
            prefs = request.notification_preferences.value
            updates["notification_preferences"] = prefs or self._default_notifications()

        if isinstance(request.dark_mode, SetTo):
            updates["dark_mode"] = request.dark_mode.value

        if isinstance(request.auto_response_templates, SetTo):
            templates = request.auto_response_templates.value
            updates["auto_response_templates"] = templates or AutoResponseTemplates()

        if isinstance(request.disabled_access_usernames, SetTo):
            usernames = request.disabled_access_usernames.value
            updates["disabled_access_usernames"] = list(usernames) if usernames else []

        updated = current.model_copy(update=updates)
        return self._store.update_rep_settings(updated, expected_version=current.version)

    # --- Combined view ---

    def get_effective_settings(self, business_rep_id: UUID) -> EffectiveSettings:
        """
        Pair a representative's settings with their business's settings.

        Rep settings are default-created; business settings are only read,
        so the business half is None when the rep has no business or the
        business has no row yet.
        """
        rep_settings = self._load_or_create_rep_settings(business_rep_id)

        business_view: BusinessSettingsView | None = None
        business_id = self._directory.get_business_id_for_rep(business_rep_id)
        if business_id is not None:
            business_settings = self._store.get_business_settings(business_id)
            if business_settings is not None:
                business_view = self._project(business_settings, self._now())

        return EffectiveSettings(business_settings=business_view, rep_settings=rep_settings)

    # --- Helpers ---

    def _load_or_create_business_settings(self, business_id: UUID) -> BusinessSettings:
        settings = self._store.get_business_settings(business_id)
        if settings is not None:
            return settings

        now = self._now()
        logger.debug("Creating default business settings for %s", business_id)
        return self._store.add_business_settings(
            BusinessSettings(business_id=business_id, created_at=now, updated_at=now)
        )

    def _load_or_create_rep_settings(self, business_rep_id: UUID) -> RepSettings:
        settings = self._store.get_rep_settings(business_rep_id)
        if settings is not None:
            return settings

        now = self._now()
        logger.debug("Creating default rep settings for %s", business_rep_id)
        return self._store.add_rep_settings(
            RepSettings(
                business_rep_id=business_rep_id,
                notification_preferences=self._default_notifications(),
                created_at=now,
                updated_at=now,
            )
        )

    def _default_notifications(self) -> NotificationPreferences:
        return NotificationPreferences(**self._notification_defaults.model_dump())

    def _apply_reviews_privacy(
        self,
        settings: BusinessSettings,
        request: UpdateBusinessSettingsRequest,
        now: datetime,
    ) -> BusinessSettings:
        updates: dict[str, Any] = {}

        if isinstance(request.reviews_private, SetTo):
            if request.reviews_private.value:
                if not settings.reviews_private:
                    updates["reviews_private_enabled_at"] = now
                updates["reviews_private"] = True
            else:
                updates["reviews_private"] = False
                updates["reviews_private_enabled_at"] = None
                updates["private_reviews_reason"] = None

        private_after = value_or(request.reviews_private, settings.reviews_private)
        if isinstance(request.private_reviews_reason, SetTo):
            reason = request.private_reviews_reason.value
            if reason is not None and not private_after:
                raise InvalidArgumentError(
                    "private_reviews_reason", "reviews must be private to record a reason"
                )
            updates["private_reviews_reason"] = reason

        if not updates:
            return settings
        return settings.model_copy(update=updates)

    def _apply_dnd_changes(
        self,
        settings: BusinessSettings,
        request: UpdateBusinessSettingsRequest,
        now: datetime,
    ) -> BusinessSettings:
        if isinstance(request.dnd_mode_enabled, SetTo):
            if request.dnd_mode_enabled.value:
                enabled = self._engine.enable(
                    settings,
                    value_or(request.dnd_mode_duration_hours, None),
                    now,
                    reason=value_or(request.dnd_mode_reason, None),
                    message=value_or(request.dnd_mode_message, None),
                )
                logger.info(
                    "DnD mode enabled for business %s until %s",
                    settings.business_id,
                    enabled.dnd_mode_expires_at,
                )
                return enabled

            for name in ("dnd_mode_reason", "dnd_mode_message"):
                field = getattr(request, name)
                if isinstance(field, SetTo) and field.value is not None:
                    raise InvalidArgumentError(name, "cannot be set while disabling DnD mode")
            if settings.dnd_mode_enabled:
                logger.info("DnD mode disabled for business %s", settings.business_id)
            return self._engine.disable(settings, now)

        # Reason/message edits without an enable/disable apply to the live window
        updates: dict[str, Any] = {}
        if isinstance(request.dnd_mode_reason, SetTo):
            updates["dnd_mode_reason"] = request.dnd_mode_reason.value
        if isinstance(request.dnd_mode_message, SetTo):
            updates["dnd_mode_message"] = (
                request.dnd_mode_message.value or self._engine.rules.default_message
            )

        if not updates:
            return settings
        if not settings.dnd_mode_enabled:
            field_name = next(iter(updates))
            raise InvalidArgumentError(field_name, "DnD mode is not active")
        return settings.model_copy(update=updates)

    def _project(self, settings: BusinessSettings, now: datetime) -> BusinessSettingsView:
        return BusinessSettingsView(
            settings=settings,
            dnd_state=dnd.state_of(settings),
            remaining_dnd_hours=dnd.remaining_hours(settings, now),
        )


def _validate_business_request(request: UpdateBusinessSettingsRequest) -> None:
    """Reject payload shapes that cannot be applied regardless of stored state."""
    for name in ("reviews_private", "dnd_mode_enabled"):
        field = getattr(request, name)
        if isinstance(field, SetTo) and field.value is None:
            raise InvalidArgumentError(name, "must be true or false")

    enabling = isinstance(request.dnd_mode_enabled, SetTo) and request.dnd_mode_enabled.value
    if is_set(request.dnd_mode_duration_hours) and not enabling:
        raise InvalidArgumentError(
            "dnd_mode_duration_hours", "only allowed together with dnd_mode_enabled=true"
        )
