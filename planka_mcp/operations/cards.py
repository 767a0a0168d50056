"""Card operations, including card members and the card stopwatch.

Planka stores a card stopwatch as ``{startedAt, total}``: ``startedAt`` is set
while the stopwatch runs and ``total`` holds the seconds accumulated by
previous runs. Elapsed time is computed here, client-side.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import PlankaClientError, PlankaError
from planka_mcp.models import (
    DEFAULT_POSITION,
    Card,
    CardCreate,
    CardMembership,
    CardMove,
    CardUpdate,
    Stopwatch,
    parse_input,
    to_body,
)
from planka_mcp.operations import lists
from planka_mcp.operations.base import (
    by_position,
    embedded,
    fetch_included,
    fetch_item,
    is_not_found,
    operation,
    success,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_card(
    client: PlankaClient,
    list_id: str,
    name: str,
    description: str | None = None,
    position: float = DEFAULT_POSITION,
    due_date: str | datetime | None = None,
) -> Card:
    with operation("create card"):
        data = parse_input(
            CardCreate,
            list_id=list_id,
            name=name,
            description=description,
            position=position,
            due_date=due_date,
        )
        return fetch_item(
            client,
            Card,
            f"/api/lists/{data.list_id}/cards",
            method="POST",
            body=to_body(data, "name", "description", "position", "due_date"),
        )


def get_cards(client: PlankaClient, list_id: str, board_id: str | None = None) -> list[Card]:
    """Cards of a list in position order.

    Cards are embedded in the owning board's response; when ``board_id`` is
    not given it is read from the list first. An unknown list yields [].
    """
    with operation("get cards"):
        if board_id is None:
            try:
                board_id = lists.get_list(client, list_id).board_id
            except PlankaClientError as e:
                if is_not_found(e):
                    return []
                raise
        included = fetch_included(client, f"/api/boards/{board_id}")
    return by_position(embedded(included, "cards", Card, list_id=list_id))


def get_card(client: PlankaClient, card_id: str) -> Card:
    with operation("get card"):
        return fetch_item(client, Card, f"/api/cards/{card_id}")


def update_card(
    client: PlankaClient,
    card_id: str,
    name: str | None = None,
    description: str | None = None,
    position: float | None = None,
    due_date: str | datetime | None = None,
    is_completed: bool | None = None,
) -> Card:
    """Update only the given card fields (None means unchanged)"""
    with operation("update card"):
        data = parse_input(
            CardUpdate,
            name=name,
            description=description,
            position=position,
            due_date=due_date,
            is_completed=is_completed,
        )
        return fetch_item(
            client, Card, f"/api/cards/{card_id}", method="PATCH", body=to_body(data)
        )


def move_card(
    client: PlankaClient,
    card_id: str,
    list_id: str,
    position: float = DEFAULT_POSITION,
    board_id: str | None = None,
    project_id: str | None = None,
) -> Card:
    """Move a card to another list, optionally on another board or project"""
    with operation("move card"):
        data = parse_input(
            CardMove, list_id=list_id, position=position, board_id=board_id, project_id=project_id
        )
        return fetch_item(
            client, Card, f"/api/cards/{card_id}", method="PATCH", body=to_body(data)
        )


def duplicate_card(client: PlankaClient, card_id: str, position: float | None = None) -> Card:
    with operation("duplicate card"):
        body = {"position": position} if position is not None else None
        return fetch_item(
            client, Card, f"/api/cards/{card_id}/duplicate", method="POST", body=body
        )


def delete_card(client: PlankaClient, card_id: str) -> dict[str, bool]:
    with operation("delete card"):
        client.request(f"/api/cards/{card_id}", method="DELETE")
    return success()


def assign_member_to_card(client: PlankaClient, card_id: str, user_id: str) -> CardMembership:
    with operation("assign member to card"):
        return fetch_item(
            client,
            CardMembership,
            f"/api/cards/{card_id}/memberships",
            method="POST",
            body={"userId": user_id},
        )


def remove_member_from_card(client: PlankaClient, card_id: str, user_id: str) -> dict[str, bool]:
    with operation("remove member from card"):
        client.request(
            f"/api/cards/{card_id}/memberships", method="DELETE", params={"userId": user_id}
        )
    return success()


# ===== Stopwatch =====


def format_duration(seconds: int) -> str:
    """Format seconds as "1h 2m 3s", omitting zero leading units.

    Seconds are always shown; minutes are shown whenever hours are.

    Example:
        >>> format_duration(3723)
        '1h 2m 3s'
        >>> format_duration(45)
        '45s'
    """
    hours, remainder = divmod(int(seconds), 3600)
    minutes, remaining_seconds = divmod(remainder, 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or hours > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{remaining_seconds}s")
    return " ".join(parts)


def _elapsed_seconds(started_at: datetime) -> int:
    if started_at.tzinfo is None:
        started_at = started_at.replace(tzinfo=timezone.utc)
    return max(0, math.floor((_utcnow() - started_at).total_seconds()))


def _patch_stopwatch(client: PlankaClient, card_id: str, stopwatch: dict[str, Any] | None) -> Card:
    return fetch_item(
        client, Card, f"/api/cards/{card_id}", method="PATCH", body={"stopwatch": stopwatch}
    )


def start_card_stopwatch(client: PlankaClient, card_id: str) -> Card:
    """Start the stopwatch, keeping previously accumulated time.

    A stopwatch that is already running is left untouched.
    """
    with operation("start card stopwatch"):
        card = fetch_item(client, Card, f"/api/cards/{card_id}")
        if card.stopwatch and card.stopwatch.is_running:
            logger.debug("Stopwatch on card %s is already running", card_id)
            return card

        total = card.stopwatch.total if card.stopwatch else 0
        return _patch_stopwatch(
            client,
            card_id,
            {"startedAt": _utcnow().isoformat().replace("+00:00", "Z"), "total": total},
        )


def stop_card_stopwatch(client: PlankaClient, card_id: str) -> Card:
    """Stop the stopwatch and add the elapsed seconds to its total.

    A card without a running stopwatch is returned unchanged.
    """
    with operation("stop card stopwatch"):
        card = fetch_item(client, Card, f"/api/cards/{card_id}")
        if not card.stopwatch or card.stopwatch.started_at is None:
            return card

        total = card.stopwatch.total + _elapsed_seconds(card.stopwatch.started_at)
        return _patch_stopwatch(client, card_id, {"startedAt": None, "total": total})


def get_card_stopwatch(client: PlankaClient, card_id: str) -> dict[str, Any]:
    """Read the stopwatch state without changing it.

    Returns:
        Dict with isRunning, total, current (seconds in the running period),
        startedAt, formattedTotal and formattedCurrent
    """
    with operation("get card stopwatch"):
        card = fetch_item(client, Card, f"/api/cards/{card_id}")

    stopwatch = card.stopwatch or Stopwatch()
    current = _elapsed_seconds(stopwatch.started_at) if stopwatch.started_at else 0
    return {
        "isRunning": stopwatch.is_running,
        "total": stopwatch.total,
        "current": current,
        "startedAt": stopwatch.started_at.isoformat() if stopwatch.started_at else None,
        "formattedTotal": format_duration(stopwatch.total),
        "formattedCurrent": format_duration(current),
    }


def reset_card_stopwatch(client: PlankaClient, card_id: str) -> Card:
    """Clear the stopwatch entirely"""
    with operation("reset card stopwatch"):
        return _patch_stopwatch(client, card_id, None)


def assign_members(client: PlankaClient, card_id: str, user_ids: list[str]) -> list[str]:
    """Assign each user to the card, logging (not raising) individual failures.

    Returns:
        IDs of the users that were assigned
    """
    assigned = []
    for user_id in user_ids:
        try:
            assign_member_to_card(client, card_id, user_id)
            assigned.append(user_id)
        except (PlankaError, PlankaClientError) as e:
            logger.warning("Failed to assign member %s to card %s: %s", user_id, card_id, e)
    return assigned
