"""
Settings error types.

Every failure raised by the settings core derives from SettingsError so an
outer layer can catch the family and map it to a transport response using
the ``http_status`` hint each class carries.
"""

from __future__ import annotations

from uuid import UUID


class SettingsError(Exception):
    """Base settings error."""

    http_status: int = 500


class ForbiddenError(SettingsError):
    """Actor is not allowed to perform the mutation."""

    http_status = 403

    def __init__(self, actor_id: UUID, reason: str) -> None:
        self.actor_id = actor_id
        self.reason = reason
        super().__init__(reason)


class InvalidArgumentError(SettingsError):
    """Request value is out of range or the payload is malformed."""

    http_status = 400

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid '{field}': {reason}")


class InvalidStateError(SettingsError):
    """Operation does not apply to the record's current state."""

    http_status = 400

    def __init__(self, business_id: UUID, reason: str) -> None:
        self.business_id = business_id
        self.reason = reason
        super().__init__(reason)


class ConcurrentModificationError(SettingsError):
    """A conditional write found the row changed since it was read."""

    http_status = 409

    def __init__(self, record_id: UUID, expected_version: int) -> None:
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(
            f"Settings {record_id} changed concurrently (expected version {expected_version})"
        )


class DirectoryLookupError(Exception):
    """Representative directory could not answer a lookup."""

    pass
