"""Create a card together with its tasks, members and comments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import PlankaClientError, PlankaError
from planka_mcp.models import DEFAULT_POSITION
from planka_mcp.operations import cards, comments, tasks as task_ops

logger = logging.getLogger(__name__)


def _task_entry(entry: str | dict[str, Any]) -> tuple[str, str | None]:
    if isinstance(entry, str):
        return entry, None
    return entry.get("name", ""), entry.get("comment")


def create_card_with_tasks(
    client: PlankaClient,
    list_id: str,
    name: str,
    description: str | None = None,
    tasks: list[str | dict[str, Any]] | None = None,
    comment: str | None = None,
    position: float = DEFAULT_POSITION,
    due_date: str | datetime | None = None,
    member_ids: list[str] | None = None,
) -> dict[str, Any]:
    """Create a card, then assign members, add tasks and post a comment.

    Nothing is rolled back: once the card exists, a later failure leaves the
    card (and whatever was added so far) in place. Member assignment and
    per-task comments are best-effort; a failing task or global comment
    raises.

    Args:
        client: Planka client
        list_id: List to create the card in
        name: Card name
        description: Card description
        tasks: Task names, or ``{"name": ..., "comment": ...}`` objects
        comment: Comment posted on the card after the tasks
        position: Card position within the list
        due_date: ISO 8601 due date with offset
        member_ids: Users to assign to the card

    Returns:
        Dict with the created ``card``, its ``tasks`` and the global ``comment`` (or None)
    """
    card = cards.create_card(
        client,
        list_id=list_id,
        name=name,
        description=description,
        position=position,
        due_date=due_date,
    )

    if member_ids:
        cards.assign_members(client, card.id, member_ids)

    created_tasks = []
    for index, entry in enumerate(tasks or []):
        task_name, task_comment = _task_entry(entry)
        task = task_ops.create_task(
            client, card_id=card.id, name=task_name, position=DEFAULT_POSITION * (index + 1)
        )
        created_tasks.append(task)

        if task_comment:
            try:
                comments.create_comment(
                    client,
                    card_id=card.id,
                    text=f'Comment for task "{task_name}": {task_comment}',
                )
            except (PlankaError, PlankaClientError) as e:
                logger.warning(
                    "Failed to add comment for task '%s' on card %s: %s", task_name, card.id, e
                )

    created_comment = None
    if comment:
        created_comment = comments.create_comment(client, card_id=card.id, text=comment)

    return {"card": card, "tasks": created_tasks, "comment": created_comment}
