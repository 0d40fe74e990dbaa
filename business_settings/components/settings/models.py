"""
Settings component input/output models.

Partial-update requests hold Patch fields (UNSET or SetTo(value)). Raw
payloads (snake_case or camelCase keys) are turned into requests with
``from_payload``, which rejects unknown keys and wrongly typed values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, StrictBool, StrictInt, StrictStr
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from business_settings.domain.entities import AutoResponseTemplates, NotificationPreferences
from business_settings.domain.errors import InvalidArgumentError
from business_settings.domain.patch import UNSET, Patch, SetTo

# --- Payload parsing ---


class _PayloadModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _BusinessSettingsPayload(_PayloadModel):
    reviews_private: StrictBool | None = None
    private_reviews_reason: StrictStr | None = None
    dnd_mode_enabled: StrictBool | None = None
    dnd_mode_duration_hours: StrictInt | None = None
    dnd_mode_reason: StrictStr | None = None
    dnd_mode_message: StrictStr | None = None


class _NotificationPreferencesPayload(_PayloadModel):
    # Omitted or null keys fall back to the entity defaults
    email: StrictBool | None = None
    whatsapp: StrictBool | None = None
    in_app: StrictBool | None = None

    def to_entity(self) -> NotificationPreferences:
        return NotificationPreferences(**self.model_dump(exclude_none=True))


class _AutoResponseTemplatesPayload(_PayloadModel):
    positive: StrictStr | None = None
    negative: StrictStr | None = None
    neutral: StrictStr | None = None

    def to_entity(self) -> AutoResponseTemplates:
        return AutoResponseTemplates(**self.model_dump())


class _RepSettingsPayload(_PayloadModel):
    notification_preferences: _NotificationPreferencesPayload | None = None
    dark_mode: StrictBool | None = None
    auto_response_templates: _AutoResponseTemplatesPayload | None = None
    disabled_access_usernames: list[StrictStr] | None = None


def _invalid_argument(exc: PydanticValidationError) -> InvalidArgumentError:
    """Collapse pydantic errors into one InvalidArgumentError naming the first field."""
    errors = exc.errors()
    if not errors:
        return InvalidArgumentError("_payload", str(exc))

    first = errors[0]
    loc = first.get("loc", ())
    field_name = ".".join(str(part) for part in loc) if loc else "_payload"
    messages = []
    for error in errors:
        err_loc = ".".join(str(part) for part in error.get("loc", ())) or "_payload"
        messages.append(f"{err_loc}: {error.get('msg', 'Invalid value')}")
    return InvalidArgumentError(field_name, "; ".join(messages))


def _patches_from(model: BaseModel) -> dict[str, Patch[Any]]:
    return {name: SetTo(getattr(model, name)) for name in model.model_fields_set}


# --- Requests ---


@dataclass(frozen=True)
class UpdateBusinessSettingsRequest:
    """Partial update of business-level settings."""

    reviews_private: Patch[bool] = UNSET
    private_reviews_reason: Patch[str | None] = UNSET
    dnd_mode_enabled: Patch[bool] = UNSET
    dnd_mode_duration_hours: Patch[int] = UNSET
    dnd_mode_reason: Patch[str | None] = UNSET
    dnd_mode_message: Patch[str | None] = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UpdateBusinessSettingsRequest:
        try:
            parsed = _BusinessSettingsPayload.model_validate(dict(payload))
        except PydanticValidationError as e:
            raise _invalid_argument(e) from e
        return cls(**_patches_from(parsed))

    def is_empty(self) -> bool:
        return not any(
            isinstance(getattr(self, name), SetTo) for name in self.__dataclass_fields__
        )


@dataclass(frozen=True)
class UpdateRepSettingsRequest:
    """
    Partial update of a representative's own settings.

    SetTo(None) on a structured field resets it to its default.
    """

    notification_preferences: Patch[NotificationPreferences | None] = UNSET
    dark_mode: Patch[bool] = UNSET
    auto_response_templates: Patch[AutoResponseTemplates | None] = UNSET
    disabled_access_usernames: Patch[list[str] | None] = UNSET

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UpdateRepSettingsRequest:
        try:
            parsed = _RepSettingsPayload.model_validate(dict(payload))
        except PydanticValidationError as e:
            raise _invalid_argument(e) from e

        patches = _patches_from(parsed)
        for name in ("notification_preferences", "auto_response_templates"):
            nested = patches.get(name)
            if isinstance(nested, SetTo) and nested.value is not None:
                patches[name] = SetTo(nested.value.to_entity())
        return cls(**patches)


# --- Component inputs ---


@dataclass(frozen=True)
class GetBusinessSettingsInput:
    business_id: UUID


@dataclass(frozen=True)
class UpdateBusinessSettingsInput:
    business_id: UUID
    request: UpdateBusinessSettingsRequest
    actor_id: UUID


@dataclass(frozen=True)
class ExtendDndModeInput:
    business_id: UUID
    additional_hours: int
    actor_id: UUID


@dataclass(frozen=True)
class GetDndStatusInput:
    business_id: UUID


@dataclass(frozen=True)
class GetPrivateReviewsStatusInput:
    business_id: UUID


@dataclass(frozen=True)
class ProcessExpiredDndModesInput:
    pass


@dataclass(frozen=True)
class GetRepSettingsInput:
    business_rep_id: UUID


@dataclass(frozen=True)
class UpdateRepSettingsInput:
    business_rep_id: UUID
    request: UpdateRepSettingsRequest
    actor_id: UUID


@dataclass(frozen=True)
class GetEffectiveSettingsInput:
    business_rep_id: UUID


# --- Outputs ---


@dataclass(frozen=True)
class ExpiryFailure:
    """One business whose expiry write failed."""

    business_id: UUID
    error: str


@dataclass
class ExpiryBatchResult:
    """Result of one expired-DnD sweep."""

    total_due: int = 0
    expired: int = 0
    failed: int = 0
    abandoned: int = 0
    expired_business_ids: list[UUID] = field(default_factory=list)
    failures: list[ExpiryFailure] = field(default_factory=list)

    @property
    def changed_anything(self) -> bool:
        return self.expired > 0
