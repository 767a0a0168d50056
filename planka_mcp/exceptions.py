"""Custom exception classes for planka-mcp.

This module defines the exception hierarchy for upstream Planka API failures
(the taxonomy produced from HTTP status codes) and for failures that originate
inside this client (credential resolution, schema validation, wrapped
operation failures).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any


class PlankaError(Exception):
    """Base exception for Planka API errors.

    Also used directly for any non-2xx status without a dedicated subclass.

    Attributes:
        message: Human-readable message (upstream message when available)
        status_code: HTTP status code returned by Planka
        response: Raw decoded response body
    """

    default_message = "Planka API error"

    def __init__(
        self, message: str | None = None, status_code: int | None = None, response: Any = None
    ):
        self.message = message or self.default_message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class PlankaAuthenticationError(PlankaError):
    """Raised when the bearer token is missing or rejected (401)"""

    default_message = "Authentication failed"

    def __init__(self, message: str | None = None, response: Any = None):
        message = message or self.default_message
        super().__init__(message, 401, response if response is not None else {"message": message})


class PlankaPermissionError(PlankaError):
    """Raised when the agent is authenticated but lacks rights (403)"""

    default_message = "Insufficient permissions"

    def __init__(self, message: str | None = None, response: Any = None):
        message = message or self.default_message
        super().__init__(message, 403, response if response is not None else {"message": message})


class PlankaResourceNotFoundError(PlankaError):
    """Raised when the target entity does not exist (404)"""

    def __init__(self, resource: str | None = None, response: Any = None):
        resource = resource or "Resource"
        super().__init__(
            f"Resource not found: {resource}",
            404,
            response if response is not None else {"message": f"{resource} not found"},
        )
        self.resource = resource


class PlankaConflictError(PlankaError):
    """Raised on a state conflict such as a duplicate (409)"""

    default_message = "Conflict occurred"

    def __init__(self, message: str | None = None, response: Any = None):
        message = message or self.default_message
        super().__init__(message, 409, response if response is not None else {"message": message})


class PlankaValidationError(PlankaError):
    """Raised when Planka rejects the request payload (422).

    The raw upstream response is kept on ``response`` for diagnostics.
    """

    default_message = "Validation failed"

    def __init__(self, message: str | None = None, response: Any = None):
        super().__init__(message, 422, response)


class PlankaRateLimitError(PlankaError):
    """Raised when Planka reports too many requests (429).

    Attributes:
        reset_at: When the limit resets (upstream value, or now + 60s)
    """

    default_message = "Rate limit exceeded"

    def __init__(self, message: str | None = None, reset_at: datetime | None = None):
        self.reset_at = reset_at or datetime.now(timezone.utc) + timedelta(seconds=60)
        message = message or self.default_message
        super().__init__(
            message, 429, {"message": message, "reset_at": self.reset_at.isoformat()}
        )


class PlankaClientError(Exception):
    """Base exception for failures raised by this client rather than by Planka"""


class PlankaRequestError(PlankaClientError):
    """Raised when a request to Planka fails.

    The underlying taxonomy error (or ``requests`` exception) is chained as
    ``__cause__``; use :func:`find_planka_error` to reach the taxonomy error.
    """

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class PlankaCredentialError(PlankaClientError):
    """Raised when no bearer token could be obtained for the agent account.

    Distinct from PlankaAuthenticationError: this means the client could not
    authenticate at all, not that an authenticated call was rejected.
    """


class PlankaSchemaError(PlankaClientError, ValueError):
    """Raised when input or a response does not match the expected shape.

    Attributes:
        errors: Validation error details (pydantic error dicts)
    """

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


class PlankaOperationError(PlankaClientError):
    """Raised by resource operations and helpers.

    The message always reads ``Failed to <action>: <original message>``.
    """

    def __init__(self, action: str, message: str):
        self.action = action
        super().__init__(f"Failed to {action}: {message}")

    @property
    def planka_error(self) -> PlankaError | None:
        """The upstream taxonomy error behind this failure, if any"""
        return find_planka_error(self)


def is_planka_error(error: object) -> bool:
    """Return True for any upstream taxonomy error, whatever its kind"""
    return isinstance(error, PlankaError)


def find_planka_error(error: BaseException | None) -> PlankaError | None:
    """Walk the ``__cause__`` chain and return the first taxonomy error"""
    seen: set[int] = set()
    while error is not None and id(error) not in seen:
        if isinstance(error, PlankaError):
            return error
        seen.add(id(error))
        error = error.__cause__
    return None


def _message_from(response: Any) -> str | None:
    if isinstance(response, dict):
        message = response.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _parse_reset_at(response: Any) -> datetime | None:
    """Upstream reset time: an ISO 8601 string or epoch milliseconds"""
    if not isinstance(response, dict):
        return None
    value = response.get("reset_at")
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, timezone.utc)
        if isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return None
    return None


def create_planka_error(status_code: int, response: Any) -> PlankaError:
    """Map an upstream status code and body to exactly one taxonomy error.

    Never raises: malformed or non-dict bodies fall back to the kind's
    default message.

    Example:
        >>> err = create_planka_error(422, {"message": "bad name"})
        >>> type(err).__name__, err.message
        ('PlankaValidationError', 'bad name')
    """
    message = _message_from(response)

    if status_code == 401:
        return PlankaAuthenticationError(message)
    if status_code == 403:
        return PlankaPermissionError(message)
    if status_code == 404:
        return PlankaResourceNotFoundError(message)
    if status_code == 409:
        return PlankaConflictError(message)
    if status_code == 422:
        return PlankaValidationError(message, response)
    if status_code == 429:
        return PlankaRateLimitError(message, _parse_reset_at(response))
    return PlankaError(message, status_code, response)
