"""Admin (human) identity resolution.

The agent account authenticates every call. A separate admin account is
added as an editor to every board the agent creates, so a human can see it.
Its user ID comes from configuration or is looked up by email/username.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from planka_mcp.exceptions import PlankaClientError, PlankaError

if TYPE_CHECKING:
    from planka_mcp.client import PlankaClient

logger = logging.getLogger(__name__)


def _find_user_id(client: PlankaClient, field: str, value: str) -> str | None:
    response = client.request("/api/users")
    items: Any = response.get("items") if isinstance(response, dict) else None
    if not isinstance(items, list):
        return None
    for user in items:
        if isinstance(user, dict) and user.get(field) == value:
            return user.get("id")
    return None


def get_user_id_by_email(client: PlankaClient, email: str) -> str | None:
    """Look up a user ID by exact email match; None if absent or on failure"""
    try:
        return _find_user_id(client, "email", email)
    except (PlankaError, PlankaClientError) as e:
        logger.error("Failed to get user ID by email: %s", e)
        return None


def get_user_id_by_username(client: PlankaClient, username: str) -> str | None:
    """Look up a user ID by exact username match; None if absent or on failure"""
    try:
        return _find_user_id(client, "username", username)
    except (PlankaError, PlankaClientError) as e:
        logger.error("Failed to get user ID by username: %s", e)
        return None


class AdminIdentity:
    """Resolves and caches the admin user ID.

    Resolution order: direct ID from configuration, then lookup by email,
    then lookup by username. A successful result is cached for the lifetime
    of the client; a failed resolution is retried on the next call.
    """

    def __init__(
        self,
        client: PlankaClient,
        admin_id: str | None = None,
        admin_email: str | None = None,
        admin_username: str | None = None,
    ):
        self.client = client
        self.admin_id = admin_id
        self.admin_email = admin_email
        self.admin_username = admin_username
        self._resolved: str | None = None
        self._lock = threading.Lock()

    def resolve(self) -> str | None:
        """Return the admin user ID, or None when no strategy finds it"""
        if self._resolved:
            return self._resolved
        with self._lock:
            if not self._resolved:
                self._resolved = self._lookup()
            return self._resolved

    def _lookup(self) -> str | None:
        if self.admin_id:
            return self.admin_id

        if self.admin_email:
            user_id = get_user_id_by_email(self.client, self.admin_email)
            if user_id:
                logger.debug("Resolved admin user %s by email", user_id)
                return user_id

        if self.admin_username:
            user_id = get_user_id_by_username(self.client, self.admin_username)
            if user_id:
                logger.debug("Resolved admin user %s by username", user_id)
                return user_id

        logger.warning(
            "Admin user ID not found: set PLANKA_ADMIN_ID, PLANKA_ADMIN_EMAIL or "
            "PLANKA_ADMIN_USERNAME"
        )
        return None
