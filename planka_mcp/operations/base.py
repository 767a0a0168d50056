"""Plumbing shared by the resource operation modules."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel

from planka_mcp.client import PlankaClient
from planka_mcp.exceptions import (
    PlankaClientError,
    PlankaError,
    PlankaOperationError,
    PlankaRequestError,
    PlankaResourceNotFoundError,
    PlankaSchemaError,
    find_planka_error,
)
from planka_mcp.models import ItemEnvelope, ItemsEnvelope, parse_response

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def success() -> dict[str, bool]:
    return {"success": True}


@contextmanager
def operation(action: str) -> Iterator[None]:
    """Re-raise any Planka failure as ``PlankaOperationError("Failed to <action>: ...")``"""
    try:
        yield
    except (PlankaError, PlankaClientError) as e:
        raise PlankaOperationError(action, str(e)) from e


def fetch_item(
    client: PlankaClient, model: type[M], path: str, method: str = "GET", body: Any = None
) -> M:
    """Request ``path`` and return the validated ``item`` of the envelope"""
    response = client.request(path, method=method, body=body)
    return parse_response(ItemEnvelope[model], response).item  # type: ignore[valid-type]


def fetch_items(
    client: PlankaClient, model: type[M], path: str, params: dict[str, Any] | None = None
) -> list[M]:
    """Request ``path`` and return the validated ``items`` of the envelope"""
    response = client.request(path, params=params)
    return parse_response(ItemsEnvelope[model], response).items  # type: ignore[valid-type]


def is_not_found(error: BaseException) -> bool:
    return isinstance(find_planka_error(error), PlankaResourceNotFoundError)


def fetch_included(client: PlankaClient, path: str) -> dict[str, Any]:
    """Fetch a parent resource and return its ``included`` map.

    Returns an empty map when the parent does not exist or the response
    carries no ``included`` object. Any other failure propagates.
    """
    try:
        response = client.request(path)
    except PlankaRequestError as e:
        if is_not_found(e):
            logger.debug("Parent resource %s not found, treating as empty", path)
            return {}
        raise

    if isinstance(response, dict) and isinstance(response.get("included"), dict):
        return response["included"]
    return {}


def embedded(included: dict[str, Any], key: str, model: type[M], **match: Any) -> list[M]:
    """Validate the embedded collection ``included[key]`` and filter it.

    An absent or malformed collection yields an empty list.

    Args:
        included: The ``included`` map of a parent response
        key: Collection name, e.g. "lists" or "tasks"
        model: Model to validate each entry against
        **match: Attribute values every returned entry must have
    """
    raw = included.get(key)
    if not isinstance(raw, list):
        return []

    try:
        items = [parse_response(model, entry) for entry in raw]
    except PlankaSchemaError as e:
        logger.warning("Ignoring malformed embedded %s collection: %s", key, e)
        return []

    return [
        item
        for item in items
        if all(getattr(item, name, None) == value for name, value in match.items())
    ]


def by_position(items: list[M]) -> list[M]:
    return sorted(items, key=lambda item: getattr(item, "position", None) or 0)
