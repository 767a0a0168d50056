"""MCP server exposing Planka as consolidated kanban tools.

Each tool takes an ``action`` plus the fields that action needs and returns
the result as JSON text. Errors propagate as exceptions; FastMCP reports
them to the caller as tool errors.

Argument descriptions live on the parameters (``Annotated[..., Field(...)]``)
so they end up in each tool's input schema; the handler docstring becomes
the tool description.
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Annotated, Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from planka_mcp.client import PlankaClient
from planka_mcp.helpers import board_summary, card_builder, card_details, user_manager
from planka_mcp.helpers.workflow import perform_workflow_action
from planka_mcp.models import to_jsonable
from planka_mcp.operations import (
    board_memberships,
    boards,
    cards,
    comments,
    labels,
    lists,
    projects,
    tasks as task_ops,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "planka-mcp"

ACTION = Field(description="The action to perform")


def _dump(result: Any) -> str:
    return json.dumps(to_jsonable(result), indent=2, default=str)


def _require(action: str, **values: Any) -> None:
    """Raise ValueError naming every argument ``action`` needs but did not get"""
    missing = [name for name, value in values.items() if value is None or value == ""]
    if missing:
        verb = "is" if len(missing) == 1 else "are"
        raise ValueError(f"{', '.join(missing)} {verb} required for {action} action")


def _given(**values: Any) -> dict[str, Any]:
    return {name: value for name, value in values.items() if value is not None}


class KanbanTools:
    """Tool handlers bound to one Planka client"""

    def __init__(self, client: PlankaClient):
        self.client = client

    def project_board_manager(
        self,
        action: Annotated[
            Literal[
                "get_projects",
                "get_project",
                "create_project",
                "update_project",
                "delete_project",
                "get_boards",
                "create_board",
                "get_board",
                "update_board",
                "delete_board",
                "get_board_summary",
            ],
            ACTION,
        ],
        id: Annotated[
            str | None,
            Field(
                description="The ID of the project (project actions) or board (board actions)"
            ),
        ] = None,
        project_id: Annotated[
            str | None, Field(description="The ID of the project (get_boards, create_board)")
        ] = None,
        board_id: Annotated[
            str | None,
            Field(description="The ID of the board to summarize; id also works"),
        ] = None,
        name: Annotated[str | None, Field(description="The name of the project or board")] = None,
        position: Annotated[float | None, Field(description="The position of the board")] = None,
        page: Annotated[
            int, Field(description="The page number for get_projects (1-indexed)")
        ] = 1,
        per_page: Annotated[
            int, Field(description="The number of projects per page for get_projects")
        ] = 30,
        include_task_details: Annotated[
            bool,
            Field(description="Whether to include task progress for each card (get_board_summary)"),
        ] = False,
        include_comments: Annotated[
            bool, Field(description="Whether to include comments for each card (get_board_summary)")
        ] = False,
    ) -> str:
        """Manage projects and boards.

        Project actions: get_projects, get_project, create_project,
        update_project, delete_project. Board actions: get_boards, create_board
        (also adds the admin user, six default lists and eleven default
        labels), get_board, update_board, delete_board. get_board_summary
        returns every list with its cards plus workflow statistics.
        """
        client = self.client
        if action == "get_projects":
            result: Any = projects.get_projects(client, page=page, per_page=per_page)
        elif action == "get_project":
            _require(action, id=id)
            result = projects.get_project(client, id)
        elif action == "create_project":
            _require(action, name=name)
            result = projects.create_project(client, name)
        elif action == "update_project":
            _require(action, id=id)
            result = projects.update_project(client, id, name=name)
        elif action == "delete_project":
            _require(action, id=id)
            result = projects.delete_project(client, id)
        elif action == "get_boards":
            _require(action, project_id=project_id)
            result = boards.get_boards(client, project_id)
        elif action == "create_board":
            _require(action, project_id=project_id, name=name)
            result = boards.create_board(client, project_id, name, **_given(position=position))
        elif action == "get_board":
            _require(action, id=id)
            result = boards.get_board(client, id)
        elif action == "update_board":
            _require(action, id=id)
            result = boards.update_board(client, id, name=name, position=position)
        elif action == "delete_board":
            _require(action, id=id)
            result = boards.delete_board(client, id)
        elif action == "get_board_summary":
            board_id = board_id or id
            _require(action, board_id=board_id)
            result = board_summary.get_board_summary(
                client,
                board_id,
                include_task_details=include_task_details,
                include_comments=include_comments,
            )
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def list_manager(
        self,
        action: Annotated[Literal["get_all", "create", "get_one", "update", "delete"], ACTION],
        id: Annotated[
            str | None, Field(description="The ID of the list (get_one, update, delete)")
        ] = None,
        board_id: Annotated[
            str | None, Field(description="The ID of the board (get_all, create)")
        ] = None,
        name: Annotated[str | None, Field(description="The name of the list")] = None,
        position: Annotated[float | None, Field(description="The position of the list")] = None,
    ) -> str:
        """Manage the lists of a board.

        get_all returns the board's lists in position order.
        """
        client = self.client
        if action == "get_all":
            _require(action, board_id=board_id)
            result: Any = lists.get_lists(client, board_id)
        elif action == "create":
            _require(action, board_id=board_id, name=name)
            result = lists.create_list(client, board_id, name, **_given(position=position))
        elif action == "get_one":
            _require(action, id=id)
            result = lists.get_list(client, id)
        elif action == "update":
            _require(action, id=id)
            result = lists.update_list(client, id, name=name, position=position)
        elif action == "delete":
            _require(action, id=id)
            result = lists.delete_list(client, id)
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def card_manager(
        self,
        action: Annotated[
            Literal[
                "get_all",
                "create",
                "get_one",
                "update",
                "move",
                "duplicate",
                "delete",
                "create_with_tasks",
                "get_details",
                "assign_member",
                "remove_member",
            ],
            ACTION,
        ],
        id: Annotated[
            str | None,
            Field(
                description=(
                    "The ID of the card (used for get_one, update, move, duplicate, delete, "
                    "get_details, assign_member, remove_member)"
                )
            ),
        ] = None,
        card_id: Annotated[
            str | None, Field(description="The ID of the card; an alias for id")
        ] = None,
        list_id: Annotated[
            str | None,
            Field(description="The ID of the list to read (get_all), create in or move to"),
        ] = None,
        board_id: Annotated[
            str | None,
            Field(description="The ID of the list's board (get_all) or the target board (move)"),
        ] = None,
        project_id: Annotated[
            str | None, Field(description="The ID of the target project (move)")
        ] = None,
        name: Annotated[str | None, Field(description="The name of the card")] = None,
        description: Annotated[str | None, Field(description="The description of the card")] = None,
        position: Annotated[float | None, Field(description="The position of the card")] = None,
        due_date: Annotated[
            str | None,
            Field(
                description=(
                    "The due date of the card: an ISO 8601 date (2024-05-10) or date-time; "
                    "date-times without an offset are taken as UTC"
                )
            ),
        ] = None,
        is_completed: Annotated[
            bool | None, Field(description="Whether the card is completed (update)")
        ] = None,
        tasks: Annotated[
            list[dict[str, Any]] | None,
            Field(
                description=(
                    "Task objects with a name and an optional comment, for create_with_tasks"
                )
            ),
        ] = None,
        comment: Annotated[
            str | None, Field(description="Comment to add to the card (create_with_tasks)")
        ] = None,
        member_ids: Annotated[
            list[str] | None,
            Field(description="IDs of users to assign to the card (create_with_tasks)"),
        ] = None,
        user_id: Annotated[
            str | None, Field(description="The ID of the user (assign_member, remove_member)")
        ] = None,
    ) -> str:
        """Manage cards.

        Besides CRUD and moving, create_with_tasks creates a card together
        with its tasks, members and a comment, and get_details returns the
        card with task progress, comments (newest first), board labels and a
        short analysis.
        """
        client = self.client
        card_id = id or card_id
        if action == "get_all":
            _require(action, list_id=list_id)
            result: Any = cards.get_cards(client, list_id, board_id=board_id)
        elif action == "create":
            _require(action, list_id=list_id, name=name)
            result = cards.create_card(
                client,
                list_id,
                name,
                description=description,
                due_date=due_date,
                **_given(position=position),
            )
        elif action == "get_one":
            _require(action, id=card_id)
            result = cards.get_card(client, card_id)
        elif action == "update":
            _require(action, id=card_id)
            result = cards.update_card(
                client,
                card_id,
                name=name,
                description=description,
                position=position,
                due_date=due_date,
                is_completed=is_completed,
            )
        elif action == "move":
            _require(action, id=card_id, list_id=list_id)
            result = cards.move_card(
                client,
                card_id,
                list_id,
                board_id=board_id,
                project_id=project_id,
                **_given(position=position),
            )
        elif action == "duplicate":
            _require(action, id=card_id)
            result = cards.duplicate_card(client, card_id, position=position)
        elif action == "delete":
            _require(action, id=card_id)
            result = cards.delete_card(client, card_id)
        elif action == "create_with_tasks":
            _require(action, list_id=list_id, name=name)
            result = card_builder.create_card_with_tasks(
                client,
                list_id,
                name,
                description=description,
                tasks=tasks,
                comment=comment,
                due_date=due_date,
                member_ids=member_ids,
                **_given(position=position),
            )
        elif action == "get_details":
            _require(action, card_id=card_id)
            result = card_details.get_card_details(client, card_id)
        elif action == "assign_member":
            _require(action, id=card_id, user_id=user_id)
            result = cards.assign_member_to_card(client, card_id, user_id)
        elif action == "remove_member":
            _require(action, id=card_id, user_id=user_id)
            result = cards.remove_member_from_card(client, card_id, user_id)
        else:
            raise ValueError(f"Unknown card action: {action}")
        return _dump(result)

    def stopwatch(
        self,
        action: Annotated[Literal["start", "stop", "get", "reset"], ACTION],
        id: Annotated[str, Field(description="The ID of the card")],
    ) -> str:
        """Track time spent on a card.

        start keeps previously accumulated time, stop adds the elapsed
        seconds, get reports the totals formatted as "1h 2m 3s", reset
        clears the stopwatch.
        """
        handlers = {
            "start": cards.start_card_stopwatch,
            "stop": cards.stop_card_stopwatch,
            "get": cards.get_card_stopwatch,
            "reset": cards.reset_card_stopwatch,
        }
        if action not in handlers:
            raise ValueError(f"Unknown action: {action}")
        _require(action, id=id)
        return _dump(handlers[action](self.client, id))

    def label_manager(
        self,
        action: Annotated[
            Literal["get_all", "create", "update", "delete", "add_to_card", "remove_from_card"],
            ACTION,
        ],
        id: Annotated[
            str | None,
            Field(description="The ID of the label (update, delete; also accepted as label_id)"),
        ] = None,
        board_id: Annotated[
            str | None, Field(description="The ID of the board (get_all, create)")
        ] = None,
        card_id: Annotated[
            str | None, Field(description="The ID of the card (add_to_card, remove_from_card)")
        ] = None,
        label_id: Annotated[
            str | None,
            Field(description="The ID of the label (add_to_card, remove_from_card)"),
        ] = None,
        name: Annotated[str | None, Field(description="The name of the label")] = None,
        color: Annotated[
            str | None,
            Field(description='The color of the label, a Planka color such as "berry-red"'),
        ] = None,
        position: Annotated[float | None, Field(description="The position of the label")] = None,
    ) -> str:
        """Manage board labels and their assignment to cards."""
        client = self.client
        if action == "get_all":
            _require(action, board_id=board_id)
            result: Any = labels.get_labels(client, board_id)
        elif action == "create":
            _require(action, board_id=board_id, color=color)
            result = labels.create_label(client, board_id, name, color, **_given(position=position))
        elif action == "update":
            _require(action, id=id)
            result = labels.update_label(client, id, name=name, color=color, position=position)
        elif action == "delete":
            _require(action, id=id)
            result = labels.delete_label(client, id)
        elif action == "add_to_card":
            label_id = label_id or id
            _require(action, card_id=card_id, label_id=label_id)
            result = labels.add_label_to_card(client, card_id, label_id)
        elif action == "remove_from_card":
            label_id = label_id or id
            _require(action, card_id=card_id, label_id=label_id)
            result = labels.remove_label_from_card(client, card_id, label_id)
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def task_manager(
        self,
        action: Annotated[
            Literal[
                "get_all", "create", "batch_create", "get_one", "update", "delete", "complete_task"
            ],
            ACTION,
        ],
        id: Annotated[
            str | None,
            Field(description="The ID of the task (get_one, update, delete, complete_task)"),
        ] = None,
        card_id: Annotated[
            str | None, Field(description="The ID of the card (get_all, create)")
        ] = None,
        name: Annotated[str | None, Field(description="The name of the task")] = None,
        position: Annotated[float | None, Field(description="The position of the task")] = None,
        is_completed: Annotated[
            bool | None, Field(description="Whether the task is completed (update)")
        ] = None,
        tasks: Annotated[
            list[dict[str, Any]] | None,
            Field(
                description=(
                    "Tasks to create in batch, each with cardId, name and an optional position"
                )
            ),
        ] = None,
    ) -> str:
        """Manage card tasks.

        batch_create creates every task independently and reports a result
        per task plus a summary; one failing task does not stop the others.
        """
        client = self.client
        if action == "get_all":
            _require(action, card_id=card_id)
            result: Any = task_ops.get_tasks(client, card_id)
        elif action == "create":
            _require(action, card_id=card_id, name=name)
            result = task_ops.create_task(client, card_id, name, **_given(position=position))
        elif action == "batch_create":
            _require(action, tasks=tasks)
            result = task_ops.batch_create_tasks(client, tasks)
        elif action == "get_one":
            _require(action, id=id)
            result = task_ops.get_task(client, id)
        elif action == "update":
            _require(action, id=id)
            result = task_ops.update_task(
                client, id, name=name, position=position, is_completed=is_completed
            )
        elif action == "delete":
            _require(action, id=id)
            result = task_ops.delete_task(client, id)
        elif action == "complete_task":
            _require(action, id=id)
            result = task_ops.complete_task(client, id)
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def comment_manager(
        self,
        action: Annotated[Literal["get_all", "create", "get_one", "update", "delete"], ACTION],
        id: Annotated[
            str | None, Field(description="The ID of the comment (get_one, update, delete)")
        ] = None,
        card_id: Annotated[
            str | None, Field(description="The ID of the card (get_all, create)")
        ] = None,
        text: Annotated[
            str | None, Field(description="The text content of the comment (create, update)")
        ] = None,
    ) -> str:
        """Manage card comments."""
        client = self.client
        if action == "get_all":
            _require(action, card_id=card_id)
            result: Any = comments.get_comments(client, card_id)
        elif action == "create":
            _require(action, card_id=card_id, text=text)
            result = comments.create_comment(client, card_id, text)
        elif action == "get_one":
            _require(action, id=id)
            result = comments.get_comment(client, id)
        elif action == "update":
            _require(action, id=id, text=text)
            result = comments.update_comment(client, id, text)
        elif action == "delete":
            _require(action, id=id)
            result = comments.delete_comment(client, id)
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def membership_manager(
        self,
        action: Annotated[Literal["get_all", "create", "get_one", "update", "delete"], ACTION],
        id: Annotated[
            str | None, Field(description="The ID of the membership (get_one, update, delete)")
        ] = None,
        board_id: Annotated[
            str | None, Field(description="The ID of the board (get_all, create)")
        ] = None,
        user_id: Annotated[
            str | None, Field(description="The ID of the user to add (create)")
        ] = None,
        role: Annotated[
            Literal["editor", "viewer"] | None,
            Field(description="The role of the user on the board"),
        ] = None,
        can_comment: Annotated[
            bool | None, Field(description="Whether a viewer can comment on the board")
        ] = None,
    ) -> str:
        """Manage board memberships."""
        client = self.client
        if action == "get_all":
            _require(action, board_id=board_id)
            result: Any = board_memberships.get_board_memberships(client, board_id)
        elif action == "create":
            _require(action, board_id=board_id, user_id=user_id, role=role)
            result = board_memberships.create_board_membership(
                client, board_id, user_id, role, can_comment=can_comment
            )
        elif action == "get_one":
            _require(action, id=id)
            result = board_memberships.get_board_membership(client, id)
        elif action == "update":
            _require(action, id=id)
            result = board_memberships.update_board_membership(
                client, id, role=role, can_comment=can_comment
            )
        elif action == "delete":
            _require(action, id=id)
            result = board_memberships.delete_board_membership(client, id)
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)

    def workflow(
        self,
        action: Annotated[
            Literal["start_working", "mark_completed", "move_to_testing", "move_to_done"],
            Field(description="The workflow action to perform"),
        ],
        card_id: Annotated[str, Field(description="The ID of the card to act on")],
        comment: Annotated[
            str | None,
            Field(description="Comment to add; moves fall back to a default comment"),
        ] = None,
        task_ids: Annotated[
            list[str] | None,
            Field(description="IDs of the tasks to mark complete (required for mark_completed)"),
        ] = None,
        board_id: Annotated[
            str | None,
            Field(description="The ID of the card's board, looked up from the card when omitted"),
        ] = None,
    ) -> str:
        """Move a card through the Backlog, In Progress, Testing and Done lanes.

        start_working moves to In Progress, move_to_testing to Testing (or
        Review), move_to_done to Done; each adds a comment. mark_completed
        completes the given tasks and leaves the card where it is.
        """
        _require(action, card_id=card_id)
        return _dump(
            perform_workflow_action(
                self.client,
                action,
                card_id,
                comment=comment,
                task_ids=task_ids,
                board_id=board_id,
            )
        )

    def user_manager(
        self,
        action: Annotated[Literal["list_all", "find", "get", "create"], ACTION],
        id: Annotated[str | None, Field(description="The ID of the user (get)")] = None,
        username: Annotated[
            str | None, Field(description="Username to find (find), or for the new user (create)")
        ] = None,
        email: Annotated[
            str | None, Field(description="Email to find (find), or for the new user (create)")
        ] = None,
        password: Annotated[
            str | None, Field(description="Password for the new user, at least 6 characters")
        ] = None,
        name: Annotated[str | None, Field(description="Display name for the new user")] = None,
        is_admin: Annotated[
            bool, Field(description="Whether to create the user as an administrator")
        ] = False,
        page: Annotated[int, Field(description="The page number for list_all (1-indexed)")] = 1,
        per_page: Annotated[int, Field(description="The number of users per page")] = 30,
    ) -> str:
        """Find, list and create Planka users.

        find matches username and/or email exactly; at least one is required.
        """
        client = self.client
        if action == "list_all":
            result: Any = user_manager.list_all_users(client, page=page, per_page=per_page)
        elif action == "find":
            result = user_manager.find_user(client, username=username, email=email)
        elif action == "get":
            _require(action, id=id)
            result = user_manager.get_user(client, id)
        elif action == "create":
            _require(action, email=email, username=username, password=password)
            result = user_manager.create_user(
                client, email, username, password, name=name, is_admin=is_admin
            )
        else:
            raise ValueError(f"Unknown action: {action}")
        return _dump(result)


# (tool name, handler); the handler docstring is the tool description
TOOLS: list[tuple[str, str]] = [
    ("mcp_kanban_project_board_manager", "project_board_manager"),
    ("mcp_kanban_list_manager", "list_manager"),
    ("mcp_kanban_card_manager", "card_manager"),
    ("mcp_kanban_stopwatch", "stopwatch"),
    ("mcp_kanban_label_manager", "label_manager"),
    ("mcp_kanban_task_manager", "task_manager"),
    ("mcp_kanban_comment_manager", "comment_manager"),
    ("mcp_kanban_membership_manager", "membership_manager"),
    ("mcp_kanban_workflow", "workflow"),
    ("mcp_kanban_user_manager", "user_manager"),
]


def build_server(client: PlankaClient) -> FastMCP:
    """Create the MCP server with every kanban tool bound to ``client``"""
    server = FastMCP(SERVER_NAME)
    handlers = KanbanTools(client)
    for tool_name, attribute in TOOLS:
        handler = getattr(handlers, attribute)
        server.add_tool(handler, name=tool_name, description=inspect.getdoc(handler))
    logger.debug("Registered %d tools", len(TOOLS))
    return server
