"""Board membership operations."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import (
    BoardMembership,
    MembershipCreate,
    MembershipUpdate,
    parse_input,
    to_body,
)
from planka_mcp.operations.base import (
    embedded,
    fetch_included,
    fetch_item,
    operation,
    success,
)


def create_board_membership(
    client: PlankaClient,
    board_id: str,
    user_id: str,
    role: str,
    can_comment: bool | None = None,
) -> BoardMembership:
    """Give a user access to a board.

    Args:
        client: Planka client
        board_id: Board to add the user to
        user_id: User to add
        role: "editor" or "viewer"
        can_comment: Whether a viewer may comment (ignored by Planka for editors)
    """
    with operation("create board membership"):
        data = parse_input(
            MembershipCreate,
            board_id=board_id,
            user_id=user_id,
            role=role,
            can_comment=can_comment,
        )
        return fetch_item(
            client,
            BoardMembership,
            f"/api/boards/{data.board_id}/memberships",
            method="POST",
            body=to_body(data, "user_id", "role", "can_comment"),
        )


def get_board_memberships(client: PlankaClient, board_id: str) -> list[BoardMembership]:
    with operation("get board memberships"):
        included = fetch_included(client, f"/api/boards/{board_id}")
    return embedded(included, "boardMemberships", BoardMembership, board_id=board_id)


def get_board_membership(client: PlankaClient, membership_id: str) -> BoardMembership:
    with operation("get board membership"):
        return fetch_item(client, BoardMembership, f"/api/board-memberships/{membership_id}")


def update_board_membership(
    client: PlankaClient,
    membership_id: str,
    role: str | None = None,
    can_comment: bool | None = None,
) -> BoardMembership:
    with operation("update board membership"):
        data = parse_input(MembershipUpdate, role=role, can_comment=can_comment)
        return fetch_item(
            client,
            BoardMembership,
            f"/api/board-memberships/{membership_id}",
            method="PATCH",
            body=to_body(data),
        )


def delete_board_membership(client: PlankaClient, membership_id: str) -> dict[str, bool]:
    with operation("delete board membership"):
        client.request(f"/api/board-memberships/{membership_id}", method="DELETE")
    return success()
