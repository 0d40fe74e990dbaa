from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(UTC)


class DndState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


# --- Business-level settings (parent rep only) ---

class BusinessSettings(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    business_id: UUID

    reviews_private: bool = False
    reviews_private_enabled_at: datetime | None = None
    private_reviews_reason: str | None = None

    dnd_mode_enabled: bool = False
    dnd_mode_enabled_at: datetime | None = None
    dnd_mode_expires_at: datetime | None = None
    dnd_mode_reason: str | None = None
    dnd_extension_count: int = Field(default=0, ge=0)
    dnd_mode_message: str | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    modified_by_user_id: UUID | None = None

    # Bumped by the store on every successful write
    version: int = 1

    @model_validator(mode="after")
    def _check_dnd_window(self) -> "BusinessSettings":
        if self.dnd_mode_enabled:
            if self.dnd_mode_enabled_at is None or self.dnd_mode_expires_at is None:
                raise ValueError("active DnD mode requires enabled_at and expires_at")
            if self.dnd_mode_expires_at <= self.dnd_mode_enabled_at:
                raise ValueError("DnD expiry must be after its activation time")
        return self


# --- Rep-level settings (each rep controls their own) ---

class NotificationPreferences(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: bool = True
    whatsapp: bool = False
    in_app: bool = True


class AutoResponseTemplates(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    positive: str | None = None
    negative: str | None = None
    neutral: str | None = None


class RepSettings(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    business_rep_id: UUID

    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    dark_mode: bool = False
    auto_response_templates: AutoResponseTemplates = Field(default_factory=AutoResponseTemplates)
    disabled_access_usernames: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    modified_by_user_id: UUID | None = None

    version: int = 1


# --- Read projections ---

class BusinessSettingsView(BaseModel):
    settings: BusinessSettings
    dnd_state: DndState
    remaining_dnd_hours: float | None = None

    @property
    def business_id(self) -> UUID:
        return self.settings.business_id


class DndStatus(BaseModel):
    business_id: UUID
    is_enabled: bool
    enabled_at: datetime | None = None
    expires_at: datetime | None = None
    remaining_hours: float | None = None
    extension_count: int = 0
    max_extensions: int = 3
    can_extend: bool = False
    reason: str | None = None
    message: str | None = None


class PrivateReviewsStatus(BaseModel):
    business_id: UUID
    is_enabled: bool
    enabled_at: datetime | None = None
    reason: str | None = None
    # Shown to consumers in place of the review list
    consumer_message: str | None = None


class EffectiveSettings(BaseModel):
    business_settings: BusinessSettingsView | None
    rep_settings: RepSettings
