"""
Recipient directory: who gets notified about a lifecycle event.

Pure lookups over the record store. An empty answer is a normal result
(a deployment with no managers yet), never an error.
"""

import logging
from typing import Optional

from shared.errors import NotFoundError
from shared.models import User, UserRole
from shared.record_store import InMemoryRecordStore

logger = logging.getLogger("directory")


class RecipientDirectory:
    """Resolves notification targets from user roles and request ownership."""

    def __init__(self, store: InMemoryRecordStore):
        self.store = store

    def resolve_for_role(self, role: UserRole) -> list[User]:
        """All users holding ``role``; may be empty."""
        users = self.store.list_users_by_role(UserRole(role))
        if not users:
            logger.info(f"No users with role {UserRole(role).value}")
        return users

    def resolve_owner(self, request_id: int) -> Optional[User]:
        """
        The driver who submitted a request.

        Returns None if the driver's account no longer exists.

        Raises:
            NotFoundError: If the request does not exist
        """
        request = self.store.get(request_id)
        if request is None:
            raise NotFoundError(f"Fuel request not found: {request_id}")

        owner = self.store.get_user(request.driver_id)
        if owner is None:
            logger.warning(
                f"Owner {request.driver_id} of request {request_id} has no user record"
            )
        return owner
