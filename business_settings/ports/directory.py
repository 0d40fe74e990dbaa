"""
Representative directory port.

The directory is owned by the representative service; the settings core only
asks it questions. Implementations raise DirectoryLookupError when they cannot
answer (network failure, unknown upstream error).
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID


class RepresentativeDirectoryPort(Protocol):
    def get_parent_representative(self, business_id: UUID) -> UUID | None:
        """Return the id of the first representative registered for the business."""
        ...

    def is_support_actor(self, user_id: UUID) -> bool:
        """Return True if the user holds the support role."""
        ...

    def get_business_id_for_rep(self, rep_id: UUID) -> UUID | None:
        """Return the business the representative belongs to, if any."""
        ...
