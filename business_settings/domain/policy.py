import logging
from uuid import UUID

from business_settings.domain.errors import DirectoryLookupError
from business_settings.ports.directory import RepresentativeDirectoryPort

logger = logging.getLogger(__name__)


class AuthorizationPolicy:
    """
    Allow/deny decisions for settings mutations.

    Roles are never stored on settings records: the parent representative and
    the support role are looked up through the directory on every check, and
    any lookup that cannot be resolved denies.
    """

    def __init__(self, directory: RepresentativeDirectoryPort):
        self.directory = directory

    def can_modify_business_settings(self, actor_rep_id: UUID, business_id: UUID) -> bool:
        """Only the business's parent representative may change business settings."""
        try:
            parent_rep_id = self.directory.get_parent_representative(business_id)
        except DirectoryLookupError:
            logger.warning(
                "Parent representative lookup failed for business %s; denying %s",
                business_id,
                actor_rep_id,
            )
            return False

        if parent_rep_id is None:
            logger.warning("No parent representative for business %s; denying", business_id)
            return False

        return parent_rep_id == actor_rep_id

    def can_modify_rep_settings(self, actor_rep_id: UUID, target_rep_id: UUID) -> bool:
        return actor_rep_id == target_rep_id

    def is_support_actor(self, actor_user_id: UUID) -> bool:
        try:
            return bool(self.directory.is_support_actor(actor_user_id))
        except DirectoryLookupError:
            logger.warning("Support role lookup failed for %s; denying", actor_user_id)
            return False

    def can_extend_dnd_mode(self, actor_user_id: UUID) -> bool:
        # Parent reps cannot self-extend; only support may
        return self.is_support_actor(actor_user_id)
