"""Board summary: lists, cards, labels and workflow statistics in one call.

Lists, cards, card labels, labels and tasks all come from the ``included``
map of a single board read. Comments, when requested, cost one extra request
per card.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.models import (
    Board,
    BoardList,
    Card,
    CardLabel,
    ItemEnvelope,
    Label,
    Task,
    parse_response,
)
from planka_mcp.operations import comments
from planka_mcp.operations.base import by_position, embedded, operation

BACKLOG = "backlog"
IN_PROGRESS = "in progress"
TESTING = "testing"
DONE = "done"


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up; 0 when ``whole`` is 0"""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def task_progress(tasks: list[Task]) -> dict[str, Any]:
    completed = sum(1 for task in tasks if task.is_completed)
    return {
        "items": tasks,
        "total": len(tasks),
        "completed": completed,
        "completionPercentage": percentage(completed, len(tasks)),
    }


def next_action_suggestion(backlog_count: int, in_progress_count: int, testing_count: int) -> str:
    if testing_count > 0:
        return "Review cards in Testing that need feedback"
    if in_progress_count > 0:
        return "Continue working on cards in In Progress"
    if backlog_count > 0:
        return "Start working on a card from Backlog"
    return "All tasks complete! Create new cards or projects"


def _count_in(list_entries: list[dict[str, Any]], name: str) -> int:
    for entry in list_entries:
        if (entry.get("name") or "").lower() == name:
            return entry["cardCount"]
    return 0


def _count_labelled(card_entries: list[dict[str, Any]], labels: list[Label], name: str) -> int:
    label_ids = {label.id for label in labels if (label.name or "").lower() == name}
    return sum(1 for entry in card_entries if label_ids.intersection(entry["labelIds"]))


def get_board_summary(
    client: PlankaClient,
    board_id: str,
    include_task_details: bool = False,
    include_comments: bool = False,
) -> dict[str, Any]:
    """Summarize a board for planning.

    Args:
        client: Planka client
        board_id: Board to summarize
        include_task_details: Attach a ``tasks`` progress block to every card
        include_comments: Attach each card's ``comments``

    Returns:
        Dict with board, lists (each with cards and cardCount), labels,
        stats and workflowState
    """
    with operation("get board summary"):
        envelope = parse_response(ItemEnvelope[Board], client.request(f"/api/boards/{board_id}"))
    board = envelope.item
    included = envelope.included or {}

    labels = by_position(embedded(included, "labels", Label))
    board_cards = by_position(embedded(included, "cards", Card))
    board_tasks = by_position(embedded(included, "tasks", Task)) if include_task_details else []

    labels_by_card: dict[str, list[str]] = defaultdict(list)
    for card_label in embedded(included, "cardLabels", CardLabel):
        labels_by_card[card_label.card_id].append(card_label.label_id)

    tasks_by_card: dict[str, list[Task]] = defaultdict(list)
    for task in board_tasks:
        tasks_by_card[task.card_id].append(task)

    list_entries = []
    all_card_entries = []
    for board_list in by_position(embedded(included, "lists", BoardList)):
        card_entries = []
        for card in board_cards:
            if card.list_id != board_list.id:
                continue
            entry = card.to_json()
            entry["labelIds"] = labels_by_card.get(card.id) or card.label_ids or []
            if include_task_details:
                entry["tasks"] = task_progress(tasks_by_card.get(card.id, []))
            if include_comments:
                entry["comments"] = comments.get_comments(client, card.id)
            card_entries.append(entry)

        list_entry = board_list.to_json()
        list_entry["cards"] = card_entries
        list_entry["cardCount"] = len(card_entries)
        list_entries.append(list_entry)
        all_card_entries.extend(card_entries)

    total_cards = len(all_card_entries)
    backlog_count = _count_in(list_entries, BACKLOG)
    in_progress_count = _count_in(list_entries, IN_PROGRESS)
    testing_count = _count_in(list_entries, TESTING)
    done_count = _count_in(list_entries, DONE)

    return {
        "board": board,
        "lists": list_entries,
        "labels": labels,
        "stats": {
            "totalCards": total_cards,
            "backlogCount": backlog_count,
            "inProgressCount": in_progress_count,
            "testingCount": testing_count,
            "doneCount": done_count,
            "urgentCount": _count_labelled(all_card_entries, labels, "urgent"),
            "bugCount": _count_labelled(all_card_entries, labels, "bug"),
            "completionPercentage": percentage(done_count, total_cards),
        },
        "workflowState": {
            "hasCardsInBacklog": backlog_count > 0,
            "hasCardsInProgress": in_progress_count > 0,
            "hasCardsInTesting": testing_count > 0,
            "nextActionSuggestion": next_action_suggestion(
                backlog_count, in_progress_count, testing_count
            ),
        },
    }
