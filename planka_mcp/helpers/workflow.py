"""Workflow transitions between the conventional board lanes.

Boards are assumed to carry lists named Backlog, In Progress, Testing (or
Review) and Done. Transitions are not enforced: any card can be moved to any
lane, whatever list it is in now.
"""

from __future__ import annotations

import logging
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import PlankaOperationError
from planka_mcp.models import BoardList
from planka_mcp.operations import cards, comments, lists, tasks

logger = logging.getLogger(__name__)

START_WORKING = "start_working"
MARK_COMPLETED = "mark_completed"
MOVE_TO_TESTING = "move_to_testing"
MOVE_TO_DONE = "move_to_done"

WORKFLOW_ACTIONS = (START_WORKING, MARK_COMPLETED, MOVE_TO_TESTING, MOVE_TO_DONE)

# action -> (accepted target list names in order of preference, default comment)
TRANSITIONS: dict[str, tuple[tuple[str, ...], str]] = {
    START_WORKING: (("in progress",), "🚀 Started working on this card."),
    MOVE_TO_TESTING: (
        ("testing", "review"),
        "✅ Implementation completed and ready for testing.",
    ),
    MOVE_TO_DONE: (("done",), "🎉 All work completed and verified."),
}


def find_list(board_lists: list[BoardList], names: tuple[str, ...]) -> BoardList | None:
    """First list whose name matches one of ``names`` case-insensitively"""
    for name in names:
        for board_list in board_lists:
            if (board_list.name or "").lower() == name:
                return board_list
    return None


def _complete_tasks(
    client: PlankaClient, card_id: str, task_ids: list[str] | None, comment: str | None
) -> dict[str, Any]:
    if not task_ids:
        raise ValueError("No task IDs provided for mark_completed action")

    completed = [tasks.complete_task(client, task_id) for task_id in task_ids]
    created_comment = None
    if comment:
        created_comment = comments.create_comment(client, card_id=card_id, text=comment)

    return {
        "success": True,
        "action": MARK_COMPLETED,
        "cardId": card_id,
        "tasksCompleted": len(completed),
        "tasks": completed,
        "comment": created_comment,
    }


def perform_workflow_action(
    client: PlankaClient,
    action: str,
    card_id: str,
    comment: str | None = None,
    task_ids: list[str] | None = None,
    board_id: str | None = None,
) -> dict[str, Any]:
    """Move a card to the lane for ``action`` and comment on it.

    ``mark_completed`` is the exception: it completes the given tasks, leaves
    the card where it is and only comments when ``comment`` is given.

    Args:
        client: Planka client
        action: One of WORKFLOW_ACTIONS
        card_id: Card to act on
        comment: Comment text; a default is used for moves when omitted
        task_ids: Tasks to complete (mark_completed only, required there)
        board_id: Card's board, looked up from the card when omitted

    Raises:
        ValueError: Unknown action, or mark_completed without task IDs
        PlankaOperationError: The target lane does not exist, or a Planka call failed
    """
    if action not in WORKFLOW_ACTIONS:
        raise ValueError(f"Unknown action: {action}")
    if action == MARK_COMPLETED:
        return _complete_tasks(client, card_id, task_ids, comment)

    card = cards.get_card(client, card_id)
    board_id = board_id or card.board_id or lists.get_list(client, card.list_id).board_id

    names, default_comment = TRANSITIONS[action]
    target = find_list(lists.get_lists(client, board_id), names)
    if target is None:
        raise PlankaOperationError(
            "perform workflow action", f"Target list not found for action: {action}"
        )

    moved = cards.move_card(client, card_id, list_id=target.id)
    created_comment = comments.create_comment(
        client, card_id=card_id, text=comment or default_comment
    )
    logger.info("Moved card %s to '%s' (%s)", card_id, target.name, action)

    return {
        "success": True,
        "action": action,
        "cardId": card_id,
        "listId": target.id,
        "listName": target.name,
        "card": moved,
        "comment": created_comment,
    }
