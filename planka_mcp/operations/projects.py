"""Project operations."""

from __future__ import annotations

from planka_mcp.client import PlankaClient
from planka_mcp.models import Project, ProjectCreate, ProjectUpdate, parse_input, to_body
from planka_mcp.operations.base import fetch_item, fetch_items, operation, success


def get_projects(client: PlankaClient, page: int = 1, per_page: int = 30) -> list[Project]:
    with operation("get projects"):
        return fetch_items(
            client, Project, "/api/projects", params={"page": page, "per_page": per_page}
        )


def get_project(client: PlankaClient, project_id: str) -> Project:
    with operation("get project"):
        return fetch_item(client, Project, f"/api/projects/{project_id}")


def create_project(client: PlankaClient, name: str) -> Project:
    with operation("create project"):
        data = parse_input(ProjectCreate, name=name)
        return fetch_item(client, Project, "/api/projects", method="POST", body=to_body(data))


def update_project(client: PlankaClient, project_id: str, name: str | None = None) -> Project:
    with operation("update project"):
        data = parse_input(ProjectUpdate, name=name)
        return fetch_item(
            client, Project, f"/api/projects/{project_id}", method="PATCH", body=to_body(data)
        )


def delete_project(client: PlankaClient, project_id: str) -> dict[str, bool]:
    with operation("delete project"):
        client.request(f"/api/projects/{project_id}", method="DELETE")
    return success()
