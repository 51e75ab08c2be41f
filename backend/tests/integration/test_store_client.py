"""Integration tests for StoreClient against the API and scripted transports."""

import httpx
import orjson
import pytest

from taskboard.board.client import StoreClient
from taskboard.exceptions import NotFoundError, RateLimitError, TransportError, ValidationError
from taskboard.schemas import CustomFieldCreate, ProjectCreate, ProjectUpdate, TaskCreate, TaskUpdate


def scripted(handler):
    return StoreClient("http://store/api/v1", transport=httpx.MockTransport(handler))


class TestAgainstApi:
    """Test cases for the client talking to the in-process API."""

    async def test_project_and_task_lifecycle(self, store_client):
        project = await store_client.create_project(ProjectCreate(title="Launch", status="active"))
        task = await store_client.create_task(
            TaskCreate(project_id=project.id, title="Press release", tags=["pr"])
        )

        updated = await store_client.update_task(task.id, TaskUpdate(status="review", order=250))
        assert (updated.status, updated.order, updated.tags) == ("review", 250, ["pr"])

        tasks = await store_client.list_tasks(project.id)
        assert [t.id for t in tasks] == [task.id]
        assert (await store_client.get_project(project.id)).task_count == 1

        renamed = await store_client.update_project(project.id, ProjectUpdate(title="Launch v2"))
        assert renamed.title == "Launch v2"

        await store_client.delete_task(task.id)
        assert await store_client.list_tasks(project.id) == []

    async def test_custom_fields(self, store_client):
        project = await store_client.create_project(ProjectCreate(title="Launch"))
        field = await store_client.create_custom_field(
            CustomFieldCreate(project_id=project.id, name="Platforms", type="multiselect", options=["Web"])
        )
        assert field.effective_type == "multiselect"
        assert [f.id for f in await store_client.list_custom_fields(project.id)] == [field.id]

        await store_client.delete_custom_field(field.id)
        assert await store_client.list_custom_fields(project.id) == []

    async def test_reorder(self, store_client):
        project = await store_client.create_project(ProjectCreate(title="Launch"))
        a = await store_client.create_task(TaskCreate(project_id=project.id, title="A"))
        b = await store_client.create_task(TaskCreate(project_id=project.id, title="B"))

        await store_client.reorder_tasks([b.id, a.id], [0, 1000])

        assert [t.id for t in await store_client.list_tasks(project.id)] == [b.id, a.id]

    async def test_not_found(self, store_client):
        with pytest.raises(NotFoundError) as exc_info:
            await store_client.get_task("ghost")
        assert (exc_info.value.entity, exc_info.value.entity_id) == ("Task", "ghost")

    async def test_validation_message_from_body(self, store_client):
        project = await store_client.create_project(ProjectCreate(title="Launch"))
        task = await store_client.create_task(TaskCreate(project_id=project.id, title="A"))

        with pytest.raises(ValidationError, match="Title is required") as exc_info:
            await store_client.update_task(task.id, TaskUpdate(title="   "))
        assert exc_info.value.status_code == 400


class TestErrorMapping:
    """Test cases for mapping HTTP failures onto taskboard errors."""

    async def test_rate_limit(self):
        client = scripted(lambda request: httpx.Response(429, headers={"Retry-After": "30"}))
        async with client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.list_projects()
        assert exc_info.value.retry_after == 30

    async def test_unprocessable_entity_details(self):
        body = {"detail": [{"msg": "Field required"}, {"msg": "Input should be a valid string"}]}
        client = scripted(lambda request: httpx.Response(422, json=body))
        async with client:
            with pytest.raises(ValidationError, match="Field required; Input should be"):
                await client.create_project(ProjectCreate(title="x"))

    async def test_server_error(self):
        client = scripted(lambda request: httpx.Response(503, text="maintenance"))
        async with client:
            with pytest.raises(TransportError) as exc_info:
                await client.list_projects()
        assert exc_info.value.code == "HTTP_503"
        assert exc_info.value.status_code == 503

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with scripted(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.get_task("t1")
        assert exc_info.value.code == "TIMEOUT"

    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with scripted(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.list_projects()
        assert exc_info.value.code == "TRANSPORT_ERROR"

    async def test_request_shape(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "updated": 2})

        async with scripted(handler) as client:
            await client.reorder_tasks(["a", "b"], [0, 1000])

        request = seen[0]
        assert request.url.path == "/api/v1/tasks/reorder"
        assert request.headers["X-Request-ID"]
        assert orjson.loads(request.content) == {"taskIds": ["a", "b"], "newOrders": [0, 1000]}
