"""Card comment operations.

Planka records comments as card actions of type ``commentCard``; the comment
text lives in the action's ``data.text``.
"""

from __future__ import annotations

import logging
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import (
    PlankaRequestError,
    PlankaResourceNotFoundError,
    PlankaSchemaError,
)
from planka_mcp.models import (
    Board,
    Card,
    Comment,
    CommentCreate,
    CommentUpdate,
    parse_input,
    parse_response,
    to_body,
)
from planka_mcp.operations.base import (
    embedded,
    fetch_included,
    fetch_item,
    is_not_found,
    operation,
    success,
)

logger = logging.getLogger(__name__)

COMMENT_TYPE = "commentCard"


def _comment_actions(response: Any) -> list[Comment]:
    raw = response.get("items") if isinstance(response, dict) else response
    if not isinstance(raw, list):
        return []
    entries = [
        entry for entry in raw if isinstance(entry, dict) and entry.get("type") == COMMENT_TYPE
    ]
    try:
        return [parse_response(Comment, entry) for entry in entries]
    except PlankaSchemaError as e:
        logger.warning("Ignoring malformed card actions: %s", e)
        return []


def _card_comments(client: PlankaClient, card_id: str) -> list[Comment]:
    try:
        response = client.request(f"/api/cards/{card_id}/actions")
    except PlankaRequestError as e:
        if is_not_found(e):
            return []
        raise
    return _comment_actions(response)


def create_comment(client: PlankaClient, card_id: str, text: str) -> Comment:
    with operation("create comment"):
        data = parse_input(CommentCreate, card_id=card_id, text=text)
        return fetch_item(
            client,
            Comment,
            f"/api/cards/{data.card_id}/comment-actions",
            method="POST",
            body=to_body(data, "text"),
        )


def get_comments(client: PlankaClient, card_id: str) -> list[Comment]:
    """Comments of a card, in the order Planka returns its actions"""
    with operation("get comments"):
        return _card_comments(client, card_id)


def get_comment(client: PlankaClient, comment_id: str) -> Comment:
    """Find a comment by ID by scanning the actions of every visible card"""
    with operation("get comment"):
        boards = embedded(fetch_included(client, "/api/projects"), "boards", Board)
        for board in boards:
            cards = embedded(fetch_included(client, f"/api/boards/{board.id}"), "cards", Card)
            for card in cards:
                logger.debug("Scanning card %s for comment %s", card.id, comment_id)
                for comment in _card_comments(client, card.id):
                    if comment.id == comment_id:
                        return comment
        raise PlankaResourceNotFoundError(f"Comment {comment_id}")


def update_comment(client: PlankaClient, comment_id: str, text: str) -> Comment:
    with operation("update comment"):
        data = parse_input(CommentUpdate, text=text)
        return fetch_item(
            client,
            Comment,
            f"/api/comment-actions/{comment_id}",
            method="PATCH",
            body=to_body(data),
        )


def delete_comment(client: PlankaClient, comment_id: str) -> dict[str, bool]:
    with operation("delete comment"):
        client.request(f"/api/comment-actions/{comment_id}", method="DELETE")
    return success()
