"""
Shared pytest fixtures for planka-mcp tests
"""

import sys
from pathlib import Path

# Add parent directory to path to import planka_mcp package
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import responses

from planka_mcp.client import PlankaClient

BASE_URL = "http://planka.test"
TOKEN = "token-123"


def api(path):
    """Full URL of an API path on the test Planka instance"""
    return f"{BASE_URL}/api{path}"


@pytest.fixture
def client():
    """Client for the test instance with a configured admin ID"""
    return PlankaClient(
        BASE_URL,
        "agent@example.com",
        "agent-password",
        admin_id="admin-1",
        timeout=5,
    )


@pytest.fixture
def planka_api():
    """Mocked Planka HTTP API with the login endpoint already registered"""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(responses.POST, api("/access-tokens"), json={"item": TOKEN})
        yield rsps


@pytest.fixture
def board_payload():
    """GET /api/boards/b1 response with every embedded collection filled in"""
    return {
        "item": {"id": "b1", "projectId": "p1", "name": "Sprint", "position": 65535},
        "included": {
            "lists": [
                {"id": "l3", "boardId": "b1", "name": "Done", "position": 196605},
                {"id": "l1", "boardId": "b1", "name": "Backlog", "position": 65535},
                {"id": "l2", "boardId": "b1", "name": "In Progress", "position": 131070},
            ],
            "cards": [
                {"id": "c2", "listId": "l1", "boardId": "b1", "name": "Second", "position": 2},
                {"id": "c1", "listId": "l1", "boardId": "b1", "name": "First", "position": 1},
                {"id": "c3", "listId": "l2", "boardId": "b1", "name": "Doing", "position": 1},
                {"id": "c4", "listId": "l3", "boardId": "b1", "name": "Shipped", "position": 1},
            ],
            "labels": [
                {"id": "lb1", "boardId": "b1", "name": "Bug", "color": "coral-green"},
                {"id": "lb2", "boardId": "b1", "name": "Urgent", "color": "berry-red"},
            ],
            "cardLabels": [
                {"id": "cl1", "cardId": "c1", "labelId": "lb1"},
                {"id": "cl2", "cardId": "c3", "labelId": "lb1"},
                {"id": "cl3", "cardId": "c3", "labelId": "lb2"},
            ],
            "tasks": [
                {"id": "t1", "cardId": "c1", "name": "Write", "position": 1, "isCompleted": True},
                {"id": "t2", "cardId": "c1", "name": "Test", "position": 2, "isCompleted": False},
                {"id": "t3", "cardId": "c1", "name": "Ship", "position": 3, "isCompleted": False},
            ],
            "boardMemberships": [
                {"id": "m1", "boardId": "b1", "userId": "u1", "role": "editor"},
            ],
        },
    }
