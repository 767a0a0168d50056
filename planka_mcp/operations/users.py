"""User operations."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import User, UserCreate, parse_input, to_body
from planka_mcp.operations.base import fetch_item, fetch_items, operation


def get_users(
    client: PlankaClient,
    page: int = 1,
    per_page: int = 30,
    username: str | None = None,
    email: str | None = None,
) -> list[User]:
    """List users.

    ``username`` and ``email`` are passed through as query filters; Planka may
    ignore them, so callers that need an exact match filter the result.
    """
    with operation("get users"):
        return fetch_items(
            client,
            User,
            "/api/users",
            params={"page": page, "per_page": per_page, "username": username, "email": email},
        )


def get_user(client: PlankaClient, user_id: str) -> User:
    with operation("get user"):
        return fetch_item(client, User, f"/api/users/{user_id}")


def create_user(
    client: PlankaClient,
    email: str,
    username: str,
    password: str,
    name: str | None = None,
    is_admin: bool = False,
) -> User:
    with operation("create user"):
        data = parse_input(
            UserCreate,
            email=email,
            username=username,
            password=password,
            name=name,
            is_admin=is_admin,
        )
        return fetch_item(client, User, "/api/users", method="POST", body=to_body(data))
