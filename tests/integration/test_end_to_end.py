"""
Integration tests for complete kanban flows against a fake Planka

The fake keeps projects, boards, lists, cards, labels, tasks and comments in
memory and answers the REST calls the operations make. Uses the `responses`
library to avoid real API calls.
"""

import itertools
import json
import re
import sys
from pathlib import Path

import pytest
import responses

# Add parent directory to path to import planka_mcp package
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from planka_mcp import PlankaClient
from planka_mcp.exceptions import PlankaOperationError, PlankaResourceNotFoundError
from planka_mcp.helpers import board_summary, card_builder, workflow
from planka_mcp.operations import boards, cards, lists, projects
from planka_mcp.server import KanbanTools

BASE_URL = "http://planka.fake"


class FakePlanka:
    """In-memory Planka answering the subset of the REST API used here"""

    def __init__(self):
        self.ids = itertools.count(1)
        self.store = {
            name: {}
            for name in (
                "projects",
                "boards",
                "boardMemberships",
                "lists",
                "labels",
                "cards",
                "tasks",
                "actions",
            )
        }
        self.routes = [
            ("POST", r"/api/access-tokens", self.login),
            ("GET", r"/api/projects", self.list_projects),
            ("POST", r"/api/projects", self.create_project),
            ("GET", r"/api/projects/(\w+)", self.get_project),
            ("POST", r"/api/projects/(\w+)/boards", self.create_board),
            ("GET", r"/api/boards/(\w+)", self.get_board),
            ("POST", r"/api/boards/(\w+)/memberships", self.child("boardMemberships", "boardId")),
            ("POST", r"/api/boards/(\w+)/lists", self.child("lists", "boardId")),
            ("POST", r"/api/boards/(\w+)/labels", self.child("labels", "boardId")),
            ("GET", r"/api/lists/(\w+)", self.getter("lists")),
            ("POST", r"/api/lists/(\w+)/cards", self.create_card),
            ("GET", r"/api/cards/(\w+)", self.get_card),
            ("PATCH", r"/api/cards/(\w+)", self.patcher("cards")),
            ("POST", r"/api/cards/(\w+)/tasks", self.child("tasks", "cardId")),
            ("POST", r"/api/cards/(\w+)/comment-actions", self.create_comment),
            ("GET", r"/api/cards/(\w+)/actions", self.card_actions),
            ("PATCH", r"/api/tasks/(\w+)", self.patcher("tasks")),
            ("PATCH", r"/api/lists/(\w+)", self.patcher("lists")),
            ("DELETE", r"/api/lists/(\w+)", self.delete_list),
            ("DELETE", r"/api/cards/(\w+)", self.remover("cards")),
        ]

    def register(self, rsps):
        for method in ("GET", "POST", "PATCH", "DELETE"):
            rsps.add_callback(
                method, re.compile(re.escape(BASE_URL) + r"/api/.*"), callback=self.dispatch
            )

    def dispatch(self, request):
        path = request.path_url.split("?", 1)[0]
        body = json.loads(request.body) if request.body else {}
        for method, pattern, handler in self.routes:
            match = re.fullmatch(pattern, path)
            if method == request.method and match:
                status, payload = handler(body, *match.groups())
                return (status, {"Content-Type": "application/json"}, json.dumps(payload))
        return (404, {"Content-Type": "application/json"}, json.dumps({"message": "No route"}))

    # ===== Store helpers =====

    def insert(self, kind, **fields):
        item = {"id": f"{kind[:2]}{next(self.ids)}", **fields}
        self.store[kind][item["id"]] = item
        return item

    def where(self, kind, **match):
        return [
            item
            for item in self.store[kind].values()
            if all(item.get(key) == value for key, value in match.items())
        ]

    def child(self, kind, parent_key):
        def handler(body, parent_id):
            return 200, {"item": self.insert(kind, **{parent_key: parent_id}, **body)}

        return handler

    def getter(self, kind):
        def handler(body, item_id):
            if item_id not in self.store[kind]:
                return 404, {"message": "Not found"}
            return 200, {"item": self.store[kind][item_id]}

        return handler

    def patcher(self, kind):
        def handler(body, item_id):
            if item_id not in self.store[kind]:
                return 404, {"message": "Not found"}
            self.store[kind][item_id].update(body)
            return 200, {"item": self.store[kind][item_id]}

        return handler

    def remover(self, kind):
        def handler(body, item_id):
            if item_id not in self.store[kind]:
                return 404, {"message": "Not found"}
            return 200, {"item": self.store[kind].pop(item_id)}

        return handler

    # ===== Handlers =====

    def login(self, body):
        return 200, {"item": "fake-token"}

    def list_projects(self, body):
        return 200, {
            "items": list(self.store["projects"].values()),
            "included": {"boards": list(self.store["boards"].values())},
        }

    def create_project(self, body):
        return 200, {"item": self.insert("projects", **body)}

    def get_project(self, body, project_id):
        if project_id not in self.store["projects"]:
            return 404, {"message": "Not found"}
        return 200, {
            "item": self.store["projects"][project_id],
            "included": {"boards": self.where("boards", projectId=project_id)},
        }

    def create_board(self, body, project_id):
        return 200, {"item": self.insert("boards", projectId=project_id, **body)}

    def get_board(self, body, board_id):
        if board_id not in self.store["boards"]:
            return 404, {"message": "Not found"}
        board_cards = self.where("cards", boardId=board_id)
        card_ids = {card["id"] for card in board_cards}
        return 200, {
            "item": self.store["boards"][board_id],
            "included": {
                "lists": self.where("lists", boardId=board_id),
                "labels": self.where("labels", boardId=board_id),
                "boardMemberships": self.where("boardMemberships", boardId=board_id),
                "cards": board_cards,
                "cardLabels": [],
                "tasks": [t for t in self.store["tasks"].values() if t["cardId"] in card_ids],
            },
        }

    def create_card(self, body, list_id):
        board_id = self.store["lists"][list_id]["boardId"]
        return 200, {"item": self.insert("cards", listId=list_id, boardId=board_id, **body)}

    def delete_list(self, body, list_id):
        if list_id not in self.store["lists"]:
            return 404, {"message": "Not found"}
        for card in self.where("cards", listId=list_id):
            del self.store["cards"][card["id"]]
        return 200, {"item": self.store["lists"].pop(list_id)}

    def get_card(self, body, card_id):
        if card_id not in self.store["cards"]:
            return 404, {"message": "Not found"}
        return 200, {
            "item": self.store["cards"][card_id],
            "included": {"tasks": self.where("tasks", cardId=card_id)},
        }

    def create_comment(self, body, card_id):
        action = self.insert(
            "actions",
            type="commentCard",
            cardId=card_id,
            data={"text": body["text"]},
            createdAt="2024-05-01T10:00:00.000Z",
        )
        return 200, {"item": action}

    def card_actions(self, body, card_id):
        return 200, {"items": self.where("actions", cardId=card_id)}


@pytest.fixture
def fake_planka():
    fake = FakePlanka()
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        fake.register(rsps)
        yield fake


@pytest.fixture
def client():
    return PlankaClient(BASE_URL, "agent@example.com", "agent-password", admin_id="admin-1")


class TestBoardLifecycle:
    """Test project → board → card flows end to end"""

    def test_new_board_is_ready_for_work(self, fake_planka, client):
        """Should create a populated board, then add and move a card"""
        project = projects.create_project(client, "Website")
        board = boards.create_board(client, project.id, "Sprint 1")

        board_lists = lists.get_lists(client, board.id)
        assert [item.name for item in board_lists] == [
            "Backlog",
            "To Do",
            "In Progress",
            "On Hold",
            "Review",
            "Done",
        ]
        assert len(fake_planka.where("labels", boardId=board.id)) == 11
        assert fake_planka.where("boardMemberships", boardId=board.id)[0]["userId"] == "admin-1"

        backlog, done = board_lists[0], board_lists[-1]
        card = cards.create_card(client, backlog.id, "Landing page")
        cards.move_card(client, card.id, done.id)

        assert cards.get_card(client, card.id).list_id == done.id
        assert [c.id for c in cards.get_cards(client, done.id)] == [card.id]
        assert cards.get_cards(client, backlog.id) == []

    def test_card_with_tasks_and_workflow(self, fake_planka, client):
        """Should build a card with tasks, then move it through the lanes"""
        project = projects.create_project(client, "Website")
        board = boards.create_board(client, project.id, "Sprint 1")
        backlog = lists.get_lists(client, board.id)[0]

        created = card_builder.create_card_with_tasks(
            client, backlog.id, "Checkout", tasks=["Design", "Build"], comment="done"
        )
        card_id = created["card"].id
        assert [t.name for t in created["tasks"]] == ["Design", "Build"]
        assert created["comment"].text == "done"

        started = workflow.perform_workflow_action(client, "start_working", card_id)
        assert started["listName"] == "In Progress"

        # no Testing list on a default board, so Review is used
        testing = workflow.perform_workflow_action(client, "move_to_testing", card_id)
        assert testing["listName"] == "Review"

        task_ids = [t.id for t in created["tasks"]]
        workflow.perform_workflow_action(client, "mark_completed", card_id, task_ids=task_ids)

        summary = board_summary.get_board_summary(client, board.id, include_task_details=True)
        review = next(entry for entry in summary["lists"] if entry["name"] == "Review")
        assert review["cardCount"] == 1
        assert review["cards"][0]["tasks"]["completionPercentage"] == 100
        assert summary["stats"]["totalCards"] == 1
        assert summary["workflowState"]["nextActionSuggestion"] == (
            "All tasks complete! Create new cards or projects"
        )

    def test_tools_drive_the_same_flow(self, fake_planka, client):
        """Should expose the flow through the MCP tool handlers"""
        tools = KanbanTools(client)

        project = json.loads(tools.project_board_manager("create_project", name="Ops"))
        board = json.loads(
            tools.project_board_manager("create_board", project_id=project["id"], name="Main")
        )
        board_lists = json.loads(tools.list_manager("get_all", board_id=board["id"]))
        card = json.loads(
            tools.card_manager("create", list_id=board_lists[0]["id"], name="Rotate keys")
        )
        moved = json.loads(tools.card_manager("move", id=card["id"], list_id=board_lists[2]["id"]))

        assert moved["listId"] == board_lists[2]["id"]
        comments = json.loads(tools.comment_manager("get_all", card_id=card["id"]))
        assert comments == []


class TestChangesAreVisible:
    """Test that updates and deletions show up on the next read"""

    @pytest.fixture
    def board(self, fake_planka, client):
        project = projects.create_project(client, "Website")
        return boards.create_board(client, project.id, "Sprint 1")

    def test_deleted_card_is_not_found(self, client, board):
        """Should report a deleted card as not found"""
        backlog = lists.get_lists(client, board.id)[0]
        card = cards.create_card(client, backlog.id, "Landing page")

        assert cards.delete_card(client, card.id) == {"success": True}

        with pytest.raises(PlankaOperationError, match="Failed to get card") as exc_info:
            cards.get_card(client, card.id)
        assert isinstance(exc_info.value.planka_error, PlankaResourceNotFoundError)
        assert cards.get_cards(client, backlog.id) == []

    def test_deleted_list_leaves_the_board(self, client, board):
        """Should drop a deleted list from the board's lists"""
        on_hold = next(item for item in lists.get_lists(client, board.id) if item.name == "On Hold")

        assert lists.delete_list(client, on_hold.id) == {"success": True}

        names = [item.name for item in lists.get_lists(client, board.id)]
        assert "On Hold" not in names
        assert len(names) == 5

    def test_renamed_list_keeps_its_place(self, client, board):
        """Should rename a list without moving it"""
        todo = lists.get_lists(client, board.id)[1]

        lists.update_list(client, todo.id, name="Ready")

        assert lists.get_lists(client, board.id)[1].name == "Ready"

    def test_partial_card_update_keeps_other_fields(self, client, board):
        """Should change only the given card fields"""
        backlog = lists.get_lists(client, board.id)[0]
        card = cards.create_card(
            client, backlog.id, "Landing page", description="Hero and footer", position=4096
        )

        cards.update_card(client, card.id, name="Landing page v2")

        refreshed = cards.get_card(client, card.id)
        assert refreshed.name == "Landing page v2"
        assert refreshed.description == "Hero and footer"
        assert refreshed.position == 4096
