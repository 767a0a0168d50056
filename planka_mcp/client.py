"""Planka API client: URL building, agent authentication and error classification."""

from __future__ import annotations

import logging
import threading
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests

from planka_mcp import __version__
from planka_mcp.config import DEFAULT_TIMEOUT, Settings
from planka_mcp.exceptions import (
    PlankaCredentialError,
    PlankaError,
    PlankaRequestError,
    create_planka_error,
)
from planka_mcp.identity import AdminIdentity

logger = logging.getLogger(__name__)

USER_AGENT = f"planka-mcp/{__version__} python-requests/{requests.__version__}"

ACCESS_TOKENS_PATH = "/api/access-tokens"


def build_url(base_url: str, params: dict[str, Any]) -> str:
    """Append the defined (non-None) query parameters to a URL, in order.

    Example:
        >>> build_url("http://host/api/users", {"page": 1, "email": None, "per_page": 30})
        'http://host/api/users?page=1&per_page=30'
    """
    defined = [(key, str(value)) for key, value in params.items() if value is not None]
    if not defined:
        return base_url
    scheme, netloc, path, query, fragment = urlsplit(base_url)
    query = "&".join(part for part in (query, urlencode(defined)) if part)
    return urlunsplit((scheme, netloc, path, query, fragment))


def normalize_base_url(base_url: str) -> str:
    """Strip a trailing slash and a trailing ``/api`` from the base URL"""
    base_url = base_url.rstrip("/")
    if base_url.endswith("/api"):
        base_url = base_url[: -len("/api")]
    return base_url


def normalize_path(path: str) -> str:
    """Ensure the path carries exactly one leading ``/api/`` prefix"""
    path = "/" + path.lstrip("/")
    if path.startswith("/api/"):
        return path
    return "/api" + path


def _parse_body(response: requests.Response) -> Any:
    content_type = response.headers.get("Content-Type", "")
    if "application/json" in content_type:
        if not response.content:
            return None
        return response.json()
    return response.text


class PlankaClient:
    """Authenticated client for the Planka REST API.

    Holds the two process-wide identities: the agent bearer token (resolved
    once by logging in, then reused) and the admin user ID (see
    :class:`AdminIdentity`). Every resource operation receives this object.

    Concurrent first callers of :meth:`get_token` share a single login call.
    A 401 received after the token has been cached is raised as-is; the token
    is only dropped when :meth:`reset_token` is called.

    Example:
        >>> client = PlankaClient("http://localhost:3000", "agent@example.com", "secret")
        >>> projects = client.request("/api/projects")
    """

    def __init__(
        self,
        base_url: str,
        agent_email: str | None,
        agent_password: str | None,
        *,
        admin_id: str | None = None,
        admin_email: str | None = None,
        admin_username: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
    ):
        self.base_url = normalize_base_url(base_url)
        self.agent_email = agent_email
        self.agent_password = agent_password
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self._token: str | None = None
        self._token_lock = threading.Lock()

        self.admin = AdminIdentity(
            self, admin_id=admin_id, admin_email=admin_email, admin_username=admin_username
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> PlankaClient:
        return cls(
            settings.base_url,
            settings.agent_email,
            settings.agent_password,
            admin_id=settings.admin_id,
            admin_email=settings.admin_email,
            admin_username=settings.admin_username,
            timeout=settings.timeout,
            verify_ssl=settings.verify_ssl,
        )

    def url_for(self, path: str) -> str:
        return self.base_url + normalize_path(path)

    # ===== Authentication =====

    def get_token(self) -> str:
        """Return the cached agent token, logging in once if needed.

        Raises:
            PlankaCredentialError: If the token could not be obtained
        """
        if self._token:
            return self._token
        with self._token_lock:
            # Another thread may have logged in while we waited
            if not self._token:
                self._token = self._authenticate()
            return self._token

    def reset_token(self) -> None:
        """Forget the cached token so the next call logs in again"""
        with self._token_lock:
            self._token = None

    def _authenticate(self) -> str:
        if not self.agent_email or not self.agent_password:
            raise PlankaCredentialError(
                "PLANKA_AGENT_EMAIL and PLANKA_AGENT_PASSWORD environment variables are required"
            )

        url = self.url_for(ACCESS_TOKENS_PATH)
        logger.debug("Authenticating agent %s against %s", self.agent_email, url)
        try:
            response = requests.post(
                url,
                json={"emailOrUsername": self.agent_email, "password": self.agent_password},
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
            body = _parse_body(response)
        except (requests.RequestException, ValueError) as e:
            raise PlankaCredentialError(f"Failed to authenticate agent with Planka: {e}") from e

        if not response.ok:
            error = create_planka_error(response.status_code, body)
            raise PlankaCredentialError(
                f"Failed to authenticate agent with Planka: {error.message}"
            ) from error

        token = body.get("item") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise PlankaCredentialError(
                "Failed to authenticate agent with Planka: no token in response"
            )

        logger.info("Authenticated with Planka as %s", self.agent_email)
        return token

    # ===== Requests =====

    def request(
        self,
        path: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        skip_auth: bool = False,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request to the Planka API and return the decoded body.

        Args:
            path: API path, with or without the ``/api/`` prefix
            method: HTTP method
            body: JSON body, or the form fields of a multipart request
            headers: Extra headers (override the defaults)
            skip_auth: Do not attach the agent bearer token
            params: Query parameters; None values are dropped
            files: Multipart file parts; when set no JSON content type is sent

        Returns:
            Decoded JSON, text, or None for an empty JSON body

        Raises:
            PlankaCredentialError: If the agent token could not be obtained
            PlankaRequestError: On network failure or non-2xx status; the
                taxonomy error is chained as ``__cause__``
        """
        url = build_url(self.url_for(path), params or {})

        request_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if files is None:
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        if not skip_auth:
            try:
                token = self.get_token()
            except PlankaCredentialError as e:
                raise PlankaCredentialError(f"Failed to get authentication token: {e}") from e
            request_headers["Authorization"] = f"Bearer {token}"

        kwargs: dict[str, Any] = {
            "headers": request_headers,
            "timeout": self.timeout,
            "verify": self.verify_ssl,
        }
        if files is not None:
            kwargs["files"] = files
            if body is not None:
                kwargs["data"] = body
        elif body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, url)
        try:
            response = requests.request(method, url, **kwargs)
            response_body = _parse_body(response)
        except (requests.RequestException, ValueError) as e:
            raise PlankaRequestError(
                f"Failed to make Planka request to {url}: {e}", url=url
            ) from e

        if not response.ok:
            error: PlankaError = create_planka_error(response.status_code, response_body)
            logger.debug("%s %s -> HTTP %s: %s", method, url, response.status_code, error.message)
            raise PlankaRequestError(
                f"Failed to make Planka request to {url}: {error.message}", url=url
            ) from error

        return response_body
