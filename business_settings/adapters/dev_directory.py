"""
In-process representative directory for development and testing.

Production deployments resolve parent representatives and support roles
from the identity service; this adapter keeps the same answers in memory.
"""

from __future__ import annotations

import logging
from uuid import UUID

logger = logging.getLogger(__name__)


class InMemoryRepresentativeDirectory:
    """
    Directory of businesses, their representatives and support actors.

    The first representative registered for a business becomes its parent.
    """

    def __init__(self) -> None:
        self._parents: dict[UUID, UUID] = {}
        self._rep_business: dict[UUID, UUID] = {}
        self._support: set[UUID] = set()

    def register_rep(self, business_id: UUID, rep_id: UUID) -> None:
        self._rep_business[rep_id] = business_id
        if business_id not in self._parents:
            self._parents[business_id] = rep_id
            logger.debug("Rep %s registered as parent of business %s", rep_id, business_id)

    def add_support_actor(self, actor_id: UUID) -> None:
        self._support.add(actor_id)

    # --- RepresentativeDirectoryPort ---

    def get_parent_representative(self, business_id: UUID) -> UUID | None:
        return self._parents.get(business_id)

    def is_support_actor(self, actor_id: UUID) -> bool:
        return actor_id in self._support

    def get_business_id_for_rep(self, business_rep_id: UUID) -> UUID | None:
        return self._rep_business.get(business_rep_id)
