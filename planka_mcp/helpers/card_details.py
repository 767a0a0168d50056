"""Card details with task progress, comments, labels and a short analysis."""

from __future__ import annotations

from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.helpers.board_summary import task_progress
from planka_mcp.models import Comment
from planka_mcp.operations import cards, comments, labels, lists, tasks

# Phrases found in comments posted by agents rather than people
AGENT_PHRASES = ("Implemented feature", "Awaiting human review")


def has_human_feedback(newest_first: list[Comment]) -> bool:
    if not newest_first:
        return False
    text = newest_first[0].text
    return not any(phrase in text for phrase in AGENT_PHRASES)


def get_card_details(client: PlankaClient, card_id: str) -> dict[str, Any]:
    """Gather everything about a card needed to decide what to do next.

    Comments are ordered newest first. ``analysis.hasRecentHumanFeedback``
    is a heuristic: the newest comment does not look agent-written.
    """
    card = cards.get_card(client, card_id)
    progress = task_progress(tasks.get_tasks(client, card.id))
    card_comments = sorted(
        comments.get_comments(client, card.id), key=lambda c: c.created_at, reverse=True
    )

    board_id = card.board_id or lists.get_list(client, card.list_id).board_id
    board_labels = labels.get_labels(client, board_id)

    human_feedback = has_human_feedback(card_comments)
    return {
        "card": card,
        "tasks": progress,
        "comments": card_comments,
        "labels": board_labels,
        "analysis": {
            "hasRecentHumanFeedback": human_feedback,
            "isComplete": progress["completionPercentage"] == 100,
            "needsAttention": human_feedback or progress["completed"] == 0,
        },
    }
