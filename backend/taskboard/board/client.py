"""HTTP implementation of ``TaskStore`` backed by the taskboard API."""

import uuid
from typing import Any, Optional

import httpx
import structlog

from taskboard.exceptions import (
    NotFoundError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from taskboard.schemas import (
    CustomField,
    CustomFieldCreate,
    CustomFieldUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskReorder,
    TaskUpdate,
)

logger = structlog.get_logger()


def _error_message(response: httpx.Response) -> str:
    """Best human readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        detail = body.get("detail")
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list):
            return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
    return response.reason_phrase


def _retry_after(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class StoreClient:
    """Async client for the taskboard REST API.

    Maps HTTP failures onto the taskboard error taxonomy so callers never see
    httpx exceptions.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", **(headers or {})},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        entity: str,
        entity_id: str = "",
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        request_id = str(uuid.uuid4())
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers={"X-Request-ID": request_id},
            )
        except httpx.TimeoutException as e:
            logger.error("store_timeout", method=method, path=path, request_id=request_id)
            raise TransportError(f"{method} {path} timed out", code="TIMEOUT") from e
        except httpx.TransportError as e:
            logger.error("store_unreachable", method=method, path=path, error=str(e))
            raise TransportError(f"{method} {path} failed: {e}") from e

        if response.is_success:
            return response

        status_code = response.status_code
        logger.warning(
            "store_error_response",
            method=method,
            path=path,
            status=status_code,
            request_id=request_id,
        )
        if status_code == 404:
            raise NotFoundError(entity, entity_id)
        if status_code == 429:
            raise RateLimitError(retry_after=_retry_after(response))
        if status_code in (400, 422):
            raise ValidationError(_error_message(response), status_code=status_code)
        raise TransportError(
            _error_message(response),
            code=f"HTTP_{status_code}",
            status_code=status_code,
        )

    # Projects

    async def list_projects(self) -> list[Project]:
        response = await self._request("GET", "/projects/", entity="Project")
        return [Project.model_validate(p) for p in response.json()]

    async def get_project(self, project_id: str) -> Project:
        response = await self._request(
            "GET", f"/projects/{project_id}", entity="Project", entity_id=project_id
        )
        return Project.model_validate(response.json())

    async def create_project(self, data: ProjectCreate) -> Project:
        response = await self._request("POST", "/projects/", entity="Project", json=data.to_wire())
        return Project.model_validate(response.json())

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        response = await self._request(
            "PATCH",
            f"/projects/{project_id}",
            entity="Project",
            entity_id=project_id,
            json=data.to_wire(exclude_unset=True),
        )
        return Project.model_validate(response.json())

    async def delete_project(self, project_id: str) -> None:
        await self._request(
            "DELETE", f"/projects/{project_id}", entity="Project", entity_id=project_id
        )

    # Tasks

    async def list_tasks(self, project_id: str) -> list[Task]:
        response = await self._request(
            "GET",
            "/tasks/",
            entity="Project",
            entity_id=project_id,
            params={"projectId": project_id},
        )
        return [Task.model_validate(t) for t in response.json()]

    async def get_task(self, task_id: str) -> Task:
        response = await self._request("GET", f"/tasks/{task_id}", entity="Task", entity_id=task_id)
        return Task.model_validate(response.json())

    async def create_task(self, data: TaskCreate) -> Task:
        response = await self._request(
            "POST", "/tasks/", entity="Project", entity_id=data.project_id, json=data.to_wire()
        )
        return Task.model_validate(response.json())

    async def update_task(self, task_id: str, data: TaskUpdate) -> Task:
        response = await self._request(
            "PATCH",
            f"/tasks/{task_id}",
            entity="Task",
            entity_id=task_id,
            json=data.to_wire(exclude_unset=True),
        )
        return Task.model_validate(response.json())

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}", entity="Task", entity_id=task_id)

    async def reorder_tasks(self, task_ids: list[str], orders: list[float]) -> None:
        payload = TaskReorder(task_ids=task_ids, new_orders=orders)
        await self._request("POST", "/tasks/reorder", entity="Task", json=payload.to_wire())

    # Custom fields

    async def list_custom_fields(self, project_id: str) -> list[CustomField]:
        response = await self._request(
            "GET",
            "/custom-fields/",
            entity="Project",
            entity_id=project_id,
            params={"projectId": project_id},
        )
        return [CustomField.model_validate(f) for f in response.json()]

    async def create_custom_field(self, data: CustomFieldCreate) -> CustomField:
        response = await self._request(
            "POST",
            "/custom-fields/",
            entity="Project",
            entity_id=data.project_id,
            json=data.to_wire(),
        )
        return CustomField.model_validate(response.json())

    async def update_custom_field(self, field_id: str, data: CustomFieldUpdate) -> CustomField:
        response = await self._request(
            "PATCH",
            f"/custom-fields/{field_id}",
            entity="CustomField",
            entity_id=field_id,
            json=data.to_wire(exclude_unset=True),
        )
        return CustomField.model_validate(response.json())

    async def delete_custom_field(self, field_id: str) -> None:
        await self._request(
            "DELETE", f"/custom-fields/{field_id}", entity="CustomField", entity_id=field_id
        )
