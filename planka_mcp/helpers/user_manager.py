"""User lookup and management helpers."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import User
from planka_mcp.operations import users
from planka_mcp.operations.users import create_user, get_user

__all__ = ["create_user", "find_user", "get_user", "list_all_users"]


def list_all_users(client: PlankaClient, page: int = 1, per_page: int = 30) -> list[User]:
    return users.get_users(client, page=page, per_page=per_page)


def find_user(
    client: PlankaClient, username: str | None = None, email: str | None = None
) -> list[User]:
    """Users matching the given username and/or email exactly.

    Planka's user listing may ignore the query filters, so the match is
    applied again here.

    Raises:
        ValueError: If neither username nor email is given
    """
    if not username and not email:
        raise ValueError("Either username or email must be provided to find a user")

    candidates = users.get_users(client, username=username, email=email)
    return [
        user
        for user in candidates
        if (not username or user.username == username) and (not email or user.email == email)
    ]
