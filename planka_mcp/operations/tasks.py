"""Task (card checklist item) operations."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import PlankaClientError, PlankaError, PlankaResourceNotFoundError
from planka_mcp.models import (
    DEFAULT_POSITION,
    Board,
    Task,
    TaskCreate,
    TaskUpdate,
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

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 5


def create_task(
    client: PlankaClient, card_id: str, name: str, position: float = DEFAULT_POSITION
) -> Task:
    with operation("create task"):
        data = parse_input(TaskCreate, card_id=card_id, name=name, position=position)
        return fetch_item(
            client,
            Task,
            f"/api/cards/{data.card_id}/tasks",
            method="POST",
            body=to_body(data, "name", "position"),
        )


def _task_kwargs(item: dict[str, Any]) -> dict[str, Any]:
    kwargs = {
        "card_id": item.get("card_id", item.get("cardId")),
        "name": item.get("name"),
    }
    if item.get("position") is not None:
        kwargs["position"] = item["position"]
    return kwargs


def _create_one(client: PlankaClient, index: int, item: Any) -> dict[str, Any]:
    if not isinstance(item, dict):
        return {"index": index, "success": False, "error": "Task must be an object"}
    try:
        task = create_task(client, **_task_kwargs(item))
    except (PlankaError, PlankaClientError) as e:
        logger.warning("Batch task %d failed: %s", index, e)
        return {"index": index, "success": False, "error": str(e)}
    return {"index": index, "success": True, "task": task}


def batch_create_tasks(
    client: PlankaClient,
    tasks: list[dict[str, Any]],
    parallel: bool = True,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[str, Any]:
    """Create several tasks, each validated and created independently.

    One failing item does not stop the others. Results are reported in input
    order regardless of completion order.

    Args:
        client: Planka client
        tasks: Items with ``cardId`` (or ``card_id``), ``name`` and optional ``position``
        parallel: Create items concurrently on a thread pool
        max_workers: Pool size when ``parallel`` is set

    Returns:
        Dict with ``results`` ({index, success, task|error} per item) and a
        ``summary`` of total, succeeded, failed and the per-item errors
    """
    if parallel and len(tasks) > 1:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            results = list(
                pool.map(lambda pair: _create_one(client, *pair), enumerate(tasks))
            )
    else:
        results = [_create_one(client, index, item) for index, item in enumerate(tasks)]

    errors = [
        {"index": r["index"], "task": tasks[r["index"]], "error": r["error"]}
        for r in results
        if not r["success"]
    ]
    return {
        "results": results,
        "summary": {
            "total": len(tasks),
            "succeeded": len(results) - len(errors),
            "failed": len(errors),
            "errors": errors,
        },
    }


def get_tasks(client: PlankaClient, card_id: str) -> list[Task]:
    """Tasks of a card, read from the card's embedded collection"""
    with operation("get tasks"):
        included = fetch_included(client, f"/api/cards/{card_id}")
    return by_position(embedded(included, "tasks", Task, card_id=card_id))


def get_task(client: PlankaClient, task_id: str) -> Task:
    """Find a task by ID.

    Planka has no task read endpoint, so every board visible to the agent is
    scanned until the task turns up.

    Raises:
        PlankaOperationError: Chained to PlankaResourceNotFoundError when no
            board holds the task
    """
    with operation("get task"):
        boards = embedded(fetch_included(client, "/api/projects"), "boards", Board)
        for board in boards:
            logger.debug("Scanning board %s for task %s", board.id, task_id)
            included = fetch_included(client, f"/api/boards/{board.id}")
            found = embedded(included, "tasks", Task, id=task_id)
            if found:
                return found[0]
        raise PlankaResourceNotFoundError(f"Task {task_id}")


def update_task(
    client: PlankaClient,
    task_id: str,
    name: str | None = None,
    position: float | None = None,
    is_completed: bool | None = None,
) -> Task:
    with operation("update task"):
        data = parse_input(TaskUpdate, name=name, position=position, is_completed=is_completed)
        return fetch_item(
            client, Task, f"/api/tasks/{task_id}", method="PATCH", body=to_body(data)
        )


def complete_task(client: PlankaClient, task_id: str) -> Task:
    return update_task(client, task_id, is_completed=True)


def delete_task(client: PlankaClient, task_id: str) -> dict[str, bool]:
    with operation("delete task"):
        client.request(f"/api/tasks/{task_id}", method="DELETE")
    return success()
