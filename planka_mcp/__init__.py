"""Planka kanban boards exposed as MCP tools."""

from __future__ import annotations

__version__ = "0.1.0"

# Client and configuration
from planka_mcp.client import PlankaClient
from planka_mcp.config import Settings

# Exceptions
from planka_mcp.exceptions import (
    PlankaAuthenticationError,
    PlankaClientError,
    PlankaConflictError,
    PlankaCredentialError,
    PlankaError,
    PlankaOperationError,
    PlankaPermissionError,
    PlankaRateLimitError,
    PlankaRequestError,
    PlankaResourceNotFoundError,
    PlankaSchemaError,
    PlankaValidationError,
    create_planka_error,
    is_planka_error,
)

# Logging configuration
from planka_mcp.logging_config import setup_logging

# MCP server
from planka_mcp.server import build_server

__all__ = [
    "__version__",
    # Core classes
    "PlankaClient",
    "Settings",
    "build_server",
    "setup_logging",
    # Exceptions
    "PlankaError",
    "PlankaAuthenticationError",
    "PlankaPermissionError",
    "PlankaResourceNotFoundError",
    "PlankaConflictError",
    "PlankaValidationError",
    "PlankaRateLimitError",
    "PlankaClientError",
    "PlankaRequestError",
    "PlankaCredentialError",
    "PlankaSchemaError",
    "PlankaOperationError",
    "create_planka_error",
    "is_planka_error",
]
