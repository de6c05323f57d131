"""DataSource for a hosted PostgREST/Supabase backend, over httpx."""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Any

import httpx

from planboard.errors import DataSourceError, NotFoundError, TransientError, ValidationError
from planboard.models import (
    ALL_SCOPE,
    TASK_FIELDS,
    Project,
    ProjectFields,
    Tag,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

REJECTED_STATUSES = {400, 409, 422}

# Ask PostgREST to echo affected rows so an empty result means "nothing matched".
RETURN_ROWS = {"Prefer": "return=representation"}


class RestDataSource:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransientError(str(e) or type(e).__name__) from e
        if resp.status_code >= 400:
            raise _error_for(resp)
        if not resp.content:
            return None
        return resp.json()

    async def _rpc(self, name: str, params: dict[str, Any]) -> Any:
        return await self._request("POST", f"/rpc/{name}", json=params)

    async def _update_rows(self, table: str, filters: dict[str, str], body: dict[str, Any], label: str) -> None:
        rows = await self._request("PATCH", f"/{table}", params=filters, json=body, headers=RETURN_ROWS)
        if not rows:
            raise NotFoundError(f"{label} not found")

    async def _delete_rows(self, table: str, row_id: str, label: str) -> None:
        rows = await self._request("DELETE", f"/{table}", params={"id": f"eq.{row_id}"}, headers=RETURN_ROWS)
        if not rows:
            raise NotFoundError(f"{label} not found")

    # --- Tasks ---

    async def fetch_tasks_for_scope(self, scope: str) -> list[Task]:
        if scope == ALL_SCOPE:
            data = await self._rpc("get_all_user_tasks", {})
        else:
            data = await self._rpc("get_tasks_for_project", {"p_project_id": scope})
        return [Task.model_validate(row) for row in data or []]

    async def insert_task(self, fields: TaskCreate) -> Task:
        params = _rpc_params(fields.model_dump(mode="json", include={"project_id", *TASK_FIELDS}))
        params["p_tag_ids"] = fields.tag_ids
        data = await self._rpc("insert_task_with_tags", params)
        row = data[0] if isinstance(data, list) and data else data
        if not isinstance(row, dict):
            raise TransientError("insert_task_with_tags returned no task")
        return Task.model_validate(row)

    async def update_task_fields(self, task_id: str, fields: TaskUpdate) -> None:
        if fields.has_tags:
            # The RPC rewrites every column, so callers send the full field set here.
            params = _rpc_params(fields.model_dump(mode="json", include=set(TASK_FIELDS)))
            params["p_task_id"] = task_id
            params["p_custom_fields"] = params.get("p_custom_fields") or {}
            params["p_tag_ids"] = fields.tag_ids or []
            await self._rpc("update_task_with_tags", params)
            return
        body = fields.model_dump(mode="json", include=set(fields.changes()))
        await self._update_rows("tasks", {"id": f"eq.{task_id}"}, body, f"Task {task_id}")

    async def update_task_parent(self, task_ids: Collection[str], parent_id: str | None) -> None:
        if not task_ids:
            return
        await self._request(
            "PATCH",
            "/tasks",
            params={"id": f"in.({','.join(task_ids)})"},
            json={"parent_id": parent_id},
        )

    async def delete_task(self, task_id: str) -> None:
        await self._delete_rows("tasks", task_id, f"Task {task_id}")

    # --- Projects ---

    async def list_projects(self) -> list[Project]:
        data = await self._request("GET", "/projects", params={"select": "*"})
        return [Project.model_validate(row) for row in data or []]

    async def insert_project(self, fields: ProjectFields) -> Project:
        data = await self._request("POST", "/projects", json=fields.model_dump(mode="json"), headers=RETURN_ROWS)
        return Project.model_validate(data[0])

    async def update_project(self, project_id: str, fields: ProjectFields) -> None:
        await self._update_rows(
            "projects", {"id": f"eq.{project_id}"}, fields.model_dump(mode="json"), f"Project {project_id}"
        )

    async def delete_project(self, project_id: str) -> None:
        await self._delete_rows("projects", project_id, f"Project {project_id}")

    # --- Statuses and tags ---

    async def list_statuses(self) -> list[TaskStatus]:
        data = await self._request("GET", "/task_statuses", params={"select": "*", "order": "display_order"})
        return [TaskStatus.model_validate(row) for row in data or []]

    async def insert_status(self, name: str, color: str, display_order: int | None = None) -> TaskStatus:
        body = {"name": name, "color": color, "display_order": display_order}
        data = await self._request("POST", "/task_statuses", json=body, headers=RETURN_ROWS)
        return TaskStatus.model_validate(data[0])

    async def update_status(self, status_id: str, **changes: Any) -> None:
        await self._update_rows("task_statuses", {"id": f"eq.{status_id}"}, changes, f"Status {status_id}")

    async def delete_status(self, status_id: str) -> None:
        await self._delete_rows("task_statuses", status_id, f"Status {status_id}")

    async def list_tags(self) -> list[Tag]:
        data = await self._request("GET", "/tags", params={"select": "*"})
        return [Tag.model_validate(row) for row in data or []]

    async def insert_tag(self, name: str) -> Tag:
        data = await self._request("POST", "/tags", json={"name": name}, headers=RETURN_ROWS)
        return Tag.model_validate(data[0])

    async def update_tag(self, tag_id: str, name: str) -> None:
        await self._update_rows("tags", {"id": f"eq.{tag_id}"}, {"name": name}, f"Tag {tag_id}")

    async def delete_tag(self, tag_id: str) -> None:
        await self._delete_rows("tags", tag_id, f"Tag {tag_id}")

    async def aclose(self) -> None:
        await self.client.aclose()


def _rpc_params(fields: dict[str, Any]) -> dict[str, Any]:
    return {f"p_{k}": v for k, v in fields.items()}


def _error_for(resp: httpx.Response) -> DataSourceError:
    message = resp.text or resp.reason_phrase
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = body["message"]
    logger.warning("Backend answered %s: %s", resp.status_code, message)
    if resp.status_code == 404:
        return NotFoundError(message)
    if resp.status_code in REJECTED_STATUSES:
        return ValidationError(message)
    return TransientError(message)
