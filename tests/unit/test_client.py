"""
Unit tests for PlankaClient (URL handling, authentication, request errors)
"""

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Add parent directory to path to import planka_mcp package
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
import requests
import responses

from conftest import BASE_URL, TOKEN, api
from planka_mcp.client import PlankaClient, build_url, normalize_base_url, normalize_path
from planka_mcp.config import Settings
from planka_mcp.exceptions import (
    PlankaAuthenticationError,
    PlankaCredentialError,
    PlankaRequestError,
    PlankaResourceNotFoundError,
    PlankaValidationError,
    find_planka_error,
)


def login_calls(rsps):
    return [c for c in rsps.calls if c.request.url.endswith("/api/access-tokens")]


class TestURLHandling:
    """Test URL normalization and query building"""

    @pytest.mark.parametrize(
        "base_url",
        [
            "http://planka.test",
            "http://planka.test/",
            "http://planka.test/api",
            "http://planka.test/api/",
        ],
    )
    def test_normalize_base_url(self, base_url):
        """Should strip trailing slashes and a trailing /api"""
        assert normalize_base_url(base_url) == "http://planka.test"

    def test_normalize_path_adds_api_prefix(self):
        """Should add /api/ when missing"""
        assert normalize_path("projects") == "/api/projects"
        assert normalize_path("/projects") == "/api/projects"

    def test_normalize_path_keeps_existing_prefix(self):
        """Should not double the /api/ prefix"""
        assert normalize_path("/api/projects") == "/api/projects"

    def test_url_for_joins_base_and_path(self, client):
        """Should build full URLs from either path form"""
        assert client.url_for("/api/boards/b1") == f"{BASE_URL}/api/boards/b1"
        assert client.url_for("boards/b1") == f"{BASE_URL}/api/boards/b1"

    def test_build_url_drops_none_and_keeps_order(self):
        """Should append only defined parameters, in insertion order"""
        url = build_url(
            "http://h/api/users", {"page": 2, "username": None, "per_page": 10, "email": "a@b.c"}
        )
        assert url == "http://h/api/users?page=2&per_page=10&email=a%40b.c"

    def test_build_url_without_params(self):
        """Should return the URL unchanged when nothing is defined"""
        assert build_url("http://h/api/users", {"page": None}) == "http://h/api/users"


class TestAuthentication:
    """Test agent login and token caching"""

    def test_request_sends_bearer_token(self, client, planka_api):
        """Should log in and attach the token to the request"""
        planka_api.add(responses.GET, api("/projects"), json={"items": []})

        assert client.request("/api/projects") == {"items": []}

        login = login_calls(planka_api)[0]
        assert b"emailOrUsername" in login.request.body
        assert planka_api.calls[-1].request.headers["Authorization"] == f"Bearer {TOKEN}"

    def test_token_is_cached(self, client, planka_api):
        """Should log in only once for several requests"""
        planka_api.add(responses.GET, api("/projects"), json={"items": []})

        client.request("/api/projects")
        client.request("/api/projects")

        assert len(login_calls(planka_api)) == 1

    def test_concurrent_first_callers_share_one_login(self, client, planka_api):
        """Should perform a single login when many threads need the token at once"""
        with ThreadPoolExecutor(max_workers=8) as pool:
            tokens = list(pool.map(lambda _: client.get_token(), range(16)))

        assert set(tokens) == {TOKEN}
        assert len(login_calls(planka_api)) == 1

    def test_reset_token_forces_new_login(self, client, planka_api):
        """Should log in again after reset_token()"""
        client.get_token()
        client.reset_token()
        client.get_token()

        assert len(login_calls(planka_api)) == 2

    def test_skip_auth_does_not_log_in(self, client, planka_api):
        """Should not fetch a token when skip_auth is set"""
        planka_api.add(responses.GET, api("/config"), json={"item": {}})

        client.request("/api/config", skip_auth=True)

        assert login_calls(planka_api) == []
        assert "Authorization" not in planka_api.calls[0].request.headers

    def test_missing_credentials(self):
        """Should raise PlankaCredentialError without any network call"""
        client = PlankaClient(BASE_URL, None, None)

        with pytest.raises(PlankaCredentialError, match="PLANKA_AGENT_EMAIL"):
            client.get_token()

    def test_rejected_login_is_credential_error(self, client):
        """Should wrap a 401 login as PlankaCredentialError chained to the taxonomy error"""
        with responses.RequestsMock() as rsps:
            rsps.add(
                responses.POST,
                api("/access-tokens"),
                json={"message": "Invalid credentials"},
                status=401,
            )
            with pytest.raises(PlankaCredentialError) as exc_info:
                client.request("/api/projects")

        assert "Failed to get authentication token" in str(exc_info.value)
        assert "Invalid credentials" in str(exc_info.value)
        assert isinstance(find_planka_error(exc_info.value), PlankaAuthenticationError)

    def test_login_response_without_token(self, client):
        """Should fail when the login response carries no token"""
        with responses.RequestsMock() as rsps:
            rsps.add(responses.POST, api("/access-tokens"), json={"item": None})
            with pytest.raises(PlankaCredentialError, match="no token"):
                client.get_token()

    def test_login_network_failure(self, client):
        """Should wrap network errors during login"""
        with responses.RequestsMock() as rsps:
            rsps.add(
                responses.POST,
                api("/access-tokens"),
                body=requests.ConnectionError("connection refused"),
            )
            with pytest.raises(PlankaCredentialError, match="connection refused"):
                client.get_token()


class TestRequests:
    """Test request construction and error classification"""

    def test_json_body_and_content_type(self, client, planka_api):
        """Should send JSON bodies with a JSON content type"""
        planka_api.add(responses.POST, api("/projects"), json={"item": {"id": "p1", "name": "P"}})

        client.request("/api/projects", method="POST", body={"name": "P"})

        sent = planka_api.calls[-1].request
        assert sent.headers["Content-Type"] == "application/json"
        assert sent.body == b'{"name": "P"}'

    def test_query_params(self, client, planka_api):
        """Should append defined query parameters"""
        planka_api.add(responses.GET, api("/users"), json={"items": []})

        client.request("/api/users", params={"page": 1, "email": None})

        assert planka_api.calls[-1].request.url == api("/users?page=1")

    def test_multipart_request_has_no_json_content_type(self, client, planka_api):
        """Should let requests set the multipart content type for file uploads"""
        planka_api.add(responses.POST, api("/cards/c1/attachments"), json={"item": {"id": "a1"}})

        client.request(
            "/api/cards/c1/attachments",
            method="POST",
            body={"name": "notes.txt"},
            files={"file": ("notes.txt", b"hello")},
        )

        content_type = planka_api.calls[-1].request.headers["Content-Type"]
        assert content_type.startswith("multipart/form-data")

    def test_non_json_response_returns_text(self, client, planka_api):
        """Should return the text body when the response is not JSON"""
        planka_api.add(responses.GET, api("/health"), body="OK", content_type="text/plain")

        assert client.request("/api/health") == "OK"

    def test_http_error_is_classified(self, client, planka_api):
        """Should raise PlankaRequestError chained to the taxonomy error"""
        planka_api.add(
            responses.GET, api("/boards/missing"), json={"message": "Board not found"}, status=404
        )

        with pytest.raises(PlankaRequestError) as exc_info:
            client.request("/api/boards/missing")

        error = exc_info.value
        assert str(error).startswith(f"Failed to make Planka request to {api('/boards/missing')}")
        assert error.url == api("/boards/missing")
        assert isinstance(error.__cause__, PlankaResourceNotFoundError)

    def test_validation_error_message(self, client, planka_api):
        """Should surface the upstream 422 message"""
        planka_api.add(responses.POST, api("/projects"), json={"message": "bad name"}, status=422)

        with pytest.raises(PlankaRequestError, match="bad name") as exc_info:
            client.request("/api/projects", method="POST", body={"name": ""})

        cause = find_planka_error(exc_info.value)
        assert isinstance(cause, PlankaValidationError)
        assert cause.response == {"message": "bad name"}

    def test_network_error(self, client, planka_api):
        """Should wrap transport failures with the URL"""
        planka_api.add(responses.GET, api("/projects"), body=requests.Timeout("timed out"))

        with pytest.raises(PlankaRequestError, match="timed out") as exc_info:
            client.request("/api/projects")

        assert find_planka_error(exc_info.value) is None


class TestFromSettings:
    """Test building a client from Settings"""

    def test_from_settings(self):
        """Should copy connection and identity settings"""
        settings = Settings(
            base_url="https://planka.example.com/api/",
            agent_email="agent@example.com",
            agent_password="pw",
            admin_email="admin@example.com",
            timeout=12.5,
            verify_ssl=False,
        )

        client = PlankaClient.from_settings(settings)

        assert client.base_url == "https://planka.example.com"
        assert client.timeout == 12.5
        assert client.verify_ssl is False
        assert client.admin.admin_email == "admin@example.com"
