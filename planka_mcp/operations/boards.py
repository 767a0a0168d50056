"""Board operations.

Creating a board also sets it up for use: the admin user is added as an
editor and a default set of lists and labels is created. That setup is
best-effort; failures are logged and the new board is returned regardless.
"""

from __future__ import annotations

import logging

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import PlankaClientError, PlankaError
from planka_mcp.models import Board, BoardCreate, BoardUpdate, parse_input, to_body
from planka_mcp.operations import board_memberships, labels, lists
from planka_mcp.operations.base import (
    by_position,
    embedded,
    fetch_included,
    fetch_item,
    operation,
    success,
)

logger = logging.getLogger(__name__)

POSITION_GAP = 65535

DEFAULT_LISTS: list[str] = ["Backlog", "To Do", "In Progress", "On Hold", "Review", "Done"]

# (name, color): priority, then type, then status labels
DEFAULT_LABELS: list[tuple[str, str]] = [
    ("P0: Critical", "berry-red"),
    ("P1: High", "red-burgundy"),
    ("P2: Medium", "pumpkin-orange"),
    ("P3: Low", "sunny-grass"),
    ("Bug", "coral-green"),
    ("Feature", "lagoon-blue"),
    ("Enhancement", "bright-moss"),
    ("Documentation", "light-orange"),
    ("Blocked", "midnight-blue"),
    ("Needs Info", "desert-sand"),
    ("Ready", "egg-yellow"),
]


def _add_admin_member(client: PlankaClient, board_id: str) -> None:
    admin_user_id = client.admin.resolve()
    if not admin_user_id:
        logger.error("Could not add admin user as board member: Admin user ID not found")
        return
    try:
        board_memberships.create_board_membership(
            client, board_id=board_id, user_id=admin_user_id, role="editor"
        )
    except (PlankaError, PlankaClientError) as e:
        logger.error("Error adding admin user as board member: %s", e)


def _create_default_lists(client: PlankaClient, board_id: str) -> int:
    created = 0
    for index, name in enumerate(DEFAULT_LISTS, start=1):
        try:
            lists.create_list(client, board_id=board_id, name=name, position=POSITION_GAP * index)
            created += 1
        except (PlankaError, PlankaClientError) as e:
            logger.error("Error creating default list '%s' for board %s: %s", name, board_id, e)
    return created


def _create_default_labels(client: PlankaClient, board_id: str) -> int:
    created = 0
    for index, (name, color) in enumerate(DEFAULT_LABELS, start=1):
        try:
            labels.create_label(
                client, board_id=board_id, name=name, color=color, position=POSITION_GAP * index
            )
            created += 1
        except (PlankaError, PlankaClientError) as e:
            logger.error("Error creating default label '%s' for board %s: %s", name, board_id, e)
    return created


def create_board(
    client: PlankaClient, project_id: str, name: str, position: float = POSITION_GAP
) -> Board:
    """Create a board and populate it with the admin member, default lists and labels.

    Args:
        client: Planka client
        project_id: Project to create the board in
        name: Board name (trimmed, must not be empty)
        position: Board position within the project

    Returns:
        The created board (even if default population partially failed)

    Raises:
        PlankaOperationError: If input is invalid or the board itself could not be created
    """
    with operation("create board"):
        data = parse_input(BoardCreate, project_id=project_id, name=name, position=position)
        board = fetch_item(
            client,
            Board,
            f"/api/projects/{data.project_id}/boards",
            method="POST",
            body=to_body(data, "name", "position"),
        )

    _add_admin_member(client, board.id)
    list_count = _create_default_lists(client, board.id)
    label_count = _create_default_labels(client, board.id)
    logger.info(
        "Created board '%s' (%s) with %d/%d default lists and %d/%d default labels",
        board.name,
        board.id,
        list_count,
        len(DEFAULT_LISTS),
        label_count,
        len(DEFAULT_LABELS),
    )
    return board


def get_boards(client: PlankaClient, project_id: str) -> list[Board]:
    """Boards of a project, read from the project's embedded collection"""
    with operation("get boards"):
        included = fetch_included(client, f"/api/projects/{project_id}")
    return by_position(embedded(included, "boards", Board, project_id=project_id))


def get_board(client: PlankaClient, board_id: str) -> Board:
    with operation("get board"):
        return fetch_item(client, Board, f"/api/boards/{board_id}")


def update_board(
    client: PlankaClient, board_id: str, name: str | None = None, position: float | None = None
) -> Board:
    with operation("update board"):
        data = parse_input(BoardUpdate, name=name, position=position)
        return fetch_item(
            client, Board, f"/api/boards/{board_id}", method="PATCH", body=to_body(data)
        )


def delete_board(client: PlankaClient, board_id: str) -> dict[str, bool]:
    with operation("delete board"):
        client.request(f"/api/boards/{board_id}", method="DELETE")
    return success()
