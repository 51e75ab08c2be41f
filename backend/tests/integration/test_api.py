"""Integration tests for the task store API over SQLite."""

import pytest


async def create_project(api, title="Website Redesign"):
    response = await api.post("/projects/", json={"title": title, "status": "active"})
    assert response.status_code == 201
    return response.json()


async def create_task(api, project_id, title, **extra):
    response = await api.post("/tasks/", json={"projectId": project_id, "title": title, **extra})
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    """Test cases for health endpoints."""

    async def test_health(self, api):
        response = await api.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    async def test_request_id_is_echoed(self, api):
        response = await api.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_unsafe_request_id_is_replaced(self, api):
        response = await api.get("/health", headers={"X-Request-ID": "x" * 200})
        assert len(response.headers["X-Request-ID"]) == 36

    async def test_readiness(self, api):
        response = await api.get("/health/ready")
        assert response.json()["status"] == "healthy"
        assert response.json()["checks"] == {
            "projects": "healthy",
            "tasks": "healthy",
            "custom_fields": "healthy",
        }


class TestProjects:
    """Test cases for project endpoints."""

    async def test_crud(self, api):
        project = await create_project(api)
        assert project["taskCount"] == 0
        await create_task(api, project["id"], "Wireframes")

        fetched = (await api.get(f"/projects/{project['id']}")).json()
        assert fetched["taskCount"] == 1

        response = await api.patch(f"/projects/{project['id']}", json={"status": "completed"})
        assert response.json()["status"] == "completed"
        assert response.json()["title"] == "Website Redesign"

        listed = (await api.get("/projects/")).json()
        assert [p["id"] for p in listed] == [project["id"]]

    async def test_missing_project(self, api):
        response = await api.get("/projects/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Project 'nope' not found", "code": "NOT_FOUND"}

    async def test_delete_removes_children(self, api):
        project = await create_project(api)
        task = await create_task(api, project["id"], "Wireframes")
        await api.post(
            "/custom-fields/",
            json={"projectId": project["id"], "name": "Estimate", "type": "number"},
        )

        assert (await api.delete(f"/projects/{project['id']}")).status_code == 204

        assert (await api.get(f"/tasks/{task['id']}")).status_code == 404
        response = await api.get("/custom-fields/", params={"projectId": project["id"]})
        assert response.status_code == 404


class TestTasks:
    """Test cases for task endpoints."""

    async def test_create_appends_after_max_order(self, api):
        project = await create_project(api)
        first = await create_task(api, project["id"], "First")
        second = await create_task(api, project["id"], "Second", status="done")
        assert (first["order"], second["order"]) == (0, 1)

        await api.post("/tasks/reorder", json={"taskIds": [first["id"]], "newOrders": [5000]})
        third = await create_task(api, project["id"], "Third")
        assert third["order"] == 5001

    async def test_list_in_render_order(self, api):
        project = await create_project(api)
        a = await create_task(api, project["id"], "A")
        b = await create_task(api, project["id"], "B")
        await api.patch(f"/tasks/{a['id']}", json={"order": 10})

        response = await api.get("/tasks/", params={"projectId": project["id"]})
        assert [t["id"] for t in response.json()] == [b["id"], a["id"]]

    async def test_partial_update(self, api):
        project = await create_project(api)
        task = await create_task(
            api,
            project["id"],
            "Draft",
            assignee={"name": "Ada Lovelace"},
            tags=["copy"],
        )
        assert task["assignee"] == {"name": "Ada Lovelace", "initials": "AL"}

        response = await api.patch(f"/tasks/{task['id']}", json={"title": "  Final  "})
        updated = response.json()
        assert updated["title"] == "Final"
        assert updated["tags"] == ["copy"]
        assert updated["assignee"]["initials"] == "AL"

        response = await api.patch(f"/tasks/{task['id']}", json={"assignee": None})
        assert response.json()["assignee"] is None

    async def test_blank_title_rejected(self, api):
        project = await create_project(api)
        task = await create_task(api, project["id"], "Draft")
        response = await api.patch(f"/tasks/{task['id']}", json={"title": "   "})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_reorder(self, api):
        project = await create_project(api)
        a = await create_task(api, project["id"], "A")
        b = await create_task(api, project["id"], "B")

        response = await api.post(
            "/tasks/reorder", json={"taskIds": [b["id"], a["id"]], "newOrders": [0, 1000]}
        )
        assert response.json() == {"success": True, "updated": 2}

        listed = (await api.get("/tasks/", params={"projectId": project["id"]})).json()
        assert [(t["id"], t["order"]) for t in listed] == [(b["id"], 0), (a["id"], 1000)]

    async def test_reorder_length_mismatch(self, api):
        response = await api.post("/tasks/reorder", json={"taskIds": ["a", "b"], "newOrders": [0]})
        assert response.status_code == 400

    async def test_reorder_unknown_task(self, api):
        response = await api.post("/tasks/reorder", json={"taskIds": ["ghost"], "newOrders": [0]})
        assert response.status_code == 404

    async def test_delete(self, api):
        project = await create_project(api)
        task = await create_task(api, project["id"], "Draft")
        assert (await api.delete(f"/tasks/{task['id']}")).status_code == 204
        assert (await api.delete(f"/tasks/{task['id']}")).status_code == 404


class TestCustomFields:
    """Test cases for custom field endpoints and task values."""

    @pytest.fixture
    async def project(self, api):
        return await create_project(api)

    async def test_multiselect_stored_as_select(self, api, project):
        response = await api.post(
            "/custom-fields/",
            json={
                "projectId": project["id"],
                "name": "Platforms",
                "type": "multiselect",
                "options": ["Web", "iOS"],
            },
        )
        field = response.json()
        assert (field["type"], field["isMulti"]) == ("select", True)

    async def test_select_requires_options(self, api, project):
        response = await api.post(
            "/custom-fields/",
            json={"projectId": project["id"], "name": "Component", "type": "select"},
        )
        assert response.status_code == 422

    async def test_duplicate_name_rejected(self, api, project):
        payload = {"projectId": project["id"], "name": "Estimate", "type": "number"}
        assert (await api.post("/custom-fields/", json=payload)).status_code == 201
        assert (await api.post("/custom-fields/", json=payload)).status_code == 400

    async def test_task_values_validated(self, api, project):
        field = (
            await api.post(
                "/custom-fields/",
                json={"projectId": project["id"], "name": "Estimate", "type": "number"},
            )
        ).json()

        response = await api.post(
            "/tasks/",
            json={"projectId": project["id"], "title": "T", "customFields": {field["id"]: "lots"}},
        )
        assert response.status_code == 400

        task = await create_task(api, project["id"], "T", customFields={field["id"]: 3})
        assert task["customFields"][field["id"]] == {"type": "number", "value": 3}

    async def test_delete_field_strips_values(self, api, project):
        field = (
            await api.post(
                "/custom-fields/",
                json={"projectId": project["id"], "name": "Estimate", "type": "number"},
            )
        ).json()
        task = await create_task(api, project["id"], "T", customFields={field["id"]: 3})

        assert (await api.delete(f"/custom-fields/{field['id']}")).status_code == 204

        fetched = (await api.get(f"/tasks/{task['id']}")).json()
        assert fetched["customFields"] == {}

    async def test_update_options(self, api, project):
        field = (
            await api.post(
                "/custom-fields/",
                json={
                    "projectId": project["id"],
                    "name": "Component",
                    "type": "select",
                    "options": ["UI"],
                },
            )
        ).json()
        response = await api.patch(
            f"/custom-fields/{field['id']}", json={"options": ["UI", "API", "UI"], "isRequired": True}
        )
        assert response.json()["options"] == ["UI", "API"]
        assert response.json()["isRequired"] is True
