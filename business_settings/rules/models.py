from pydantic import BaseModel, Field, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class DndRules(BaseModel):
    default_duration_hours: int = Field(default=60, gt=0)
    max_duration_hours: int = Field(default=60, gt=0)
    max_extension_hours: int = Field(default=168, gt=0)
    # Reported in DnD status; extension itself is gated only by the support role
    max_extensions: int = Field(default=3, ge=0)
    default_message: str = "This business is temporarily not accepting new reviews."

    @model_validator(mode="after")
    def _default_within_max(self) -> "DndRules":
        if self.default_duration_hours > self.max_duration_hours:
            raise ValueError("default_duration_hours must not exceed max_duration_hours")
        return self


class SchedulerRules(BaseModel):
    interval_seconds: float = Field(default=900, gt=0)
    error_backoff_seconds: float = Field(default=300, gt=0)
    run_on_start: bool = True


class NotificationDefaults(BaseModel):
    email: bool = True
    whatsapp: bool = False
    in_app: bool = True


class RepDefaultsRules(BaseModel):
    notifications: NotificationDefaults = Field(default_factory=NotificationDefaults)


class PrivateReviewsRules(BaseModel):
    consumer_message: str = "This business has chosen to keep its reviews private."


class StorageRules(BaseModel):
    db_filename: str = "settings.db"


class Rules(BaseModel):
    project: ProjectRules
    dnd: DndRules = Field(default_factory=DndRules)
    scheduler: SchedulerRules = Field(default_factory=SchedulerRules)
    private_reviews: PrivateReviewsRules = Field(default_factory=PrivateReviewsRules)
    rep_defaults: RepDefaultsRules = Field(default_factory=RepDefaultsRules)
    storage: StorageRules = Field(default_factory=StorageRules)
