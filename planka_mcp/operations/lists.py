"""List operations."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import (
    DEFAULT_POSITION,
    BoardList,
    ListCreate,
    ListUpdate,
    parse_input,
    to_body,
)
from planka_mcp.operations.base import (
    by_position,
    embedded,
    fetch_included,
    fetch_item,
    operation,
    success,
)


def create_list(
    client: PlankaClient, board_id: str, name: str, position: float = DEFAULT_POSITION
) -> BoardList:
    with operation("create list"):
        data = parse_input(ListCreate, board_id=board_id, name=name, position=position)
        return fetch_item(
            client,
            BoardList,
            f"/api/boards/{data.board_id}/lists",
            method="POST",
            body=to_body(data, "name", "position"),
        )


def get_lists(client: PlankaClient, board_id: str) -> list[BoardList]:
    """Lists of a board in position order, read from the board's embedded collection"""
    with operation("get lists"):
        included = fetch_included(client, f"/api/boards/{board_id}")
    return by_position(embedded(included, "lists", BoardList, board_id=board_id))


def get_list(client: PlankaClient, list_id: str) -> BoardList:
    with operation("get list"):
        return fetch_item(client, BoardList, f"/api/lists/{list_id}")


def update_list(
    client: PlankaClient, list_id: str, name: str | None = None, position: float | None = None
) -> BoardList:
    with operation("update list"):
        data = parse_input(ListUpdate, name=name, position=position)
        return fetch_item(
            client, BoardList, f"/api/lists/{list_id}", method="PATCH", body=to_body(data)
        )


def delete_list(client: PlankaClient, list_id: str) -> dict[str, bool]:
    with operation("delete list"):
        client.request(f"/api/lists/{list_id}", method="DELETE")
    return success()
