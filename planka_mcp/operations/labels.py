"""Label operations and card label assignment."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import (
    DEFAULT_POSITION,
    LABEL_COLORS,
    Label,
    LabelCreate,
    LabelUpdate,
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

__all__ = [
    "LABEL_COLORS",
    "add_label_to_card",
    "create_label",
    "delete_label",
    "get_labels",
    "remove_label_from_card",
    "update_label",
]


def create_label(
    client: PlankaClient,
    board_id: str,
    name: str | None,
    color: str,
    position: float = DEFAULT_POSITION,
) -> Label:
    """Create a board label.

    ``color`` must be one of LABEL_COLORS; anything else is rejected before
    a request is made.
    """
    with operation("create label"):
        data = parse_input(
            LabelCreate, board_id=board_id, name=name, color=color, position=position
        )
        return fetch_item(
            client,
            Label,
            f"/api/boards/{data.board_id}/labels",
            method="POST",
            body=to_body(data, "name", "color", "position"),
        )


def get_labels(client: PlankaClient, board_id: str) -> list[Label]:
    with operation("get labels"):
        included = fetch_included(client, f"/api/boards/{board_id}")
    return by_position(embedded(included, "labels", Label, board_id=board_id))


def update_label(
    client: PlankaClient,
    label_id: str,
    name: str | None = None,
    color: str | None = None,
    position: float | None = None,
) -> Label:
    with operation("update label"):
        data = parse_input(LabelUpdate, name=name, color=color, position=position)
        return fetch_item(
            client, Label, f"/api/labels/{label_id}", method="PATCH", body=to_body(data)
        )


def delete_label(client: PlankaClient, label_id: str) -> dict[str, bool]:
    with operation("delete label"):
        client.request(f"/api/labels/{label_id}", method="DELETE")
    return success()


def add_label_to_card(client: PlankaClient, card_id: str, label_id: str) -> dict[str, bool]:
    with operation("add label to card"):
        client.request(f"/api/cards/{card_id}/labels", method="POST", body={"labelId": label_id})
    return success()


def remove_label_from_card(client: PlankaClient, card_id: str, label_id: str) -> dict[str, bool]:
    with operation("remove label from card"):
        client.request(f"/api/cards/{card_id}/labels/{label_id}", method="DELETE")
    return success()
