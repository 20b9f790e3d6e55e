"""
Tests for the ClickUp adapter.

All HTTP goes through httpx.MockTransport (see FakeServer in conftest.py),
so these run offline and can assert on exactly what was sent.
"""

import dataclasses
import json
import re
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from core.clickup import AUDIT_PRIORITY, AUDIT_TAGS, ClickUpClient
from core.errors import ConfigurationError, TransportError, ValidationError

TASK_PATH = "/api/v2/list/L1/task"

CREATED_TASK = {
    "id": "abc123",
    "name": "Call the client",
    "description": "Discuss Q3 budget",
    "status": {"status": "to do", "color": "#d3d3d3"},
    "priority": {"id": "3", "priority": "normal"},
    "assignees": [{"id": 42, "username": "sam"}],
    "tags": [{"name": "budget"}],
    "url": "https://app.clickup.com/t/abc123",
}


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.fixture
def client(settings, fake_server) -> ClickUpClient:
    return ClickUpClient(settings, transport=fake_server.transport)


class TestCreateTask:
    @pytest.mark.asyncio
    async def test_success(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (200, CREATED_TASK)

        result = await client.create_task("Call the client", "L1", description="Discuss Q3 budget")

        assert result["success"] is True
        assert result["task_id"] == "abc123"
        assert result["task_url"] == "https://app.clickup.com/t/abc123"
        assert result["message"] == "Task created successfully"
        assert result["task"].status == "to do"
        assert result["task"].priority == 3
        assert result["task"].tags == ["budget"]
        assert result["task"].assignees == [42]

        sent = fake_server.requests[0]
        assert sent.headers["Authorization"] == "pk_test_token"
        assert _body(sent) == {
            "name": "Call the client",
            "description": "Discuss Q3 budget",
            "status": "to do",
            "priority": 3,
            "due_date": None,
            "assignees": [],
            "tags": [],
        }

    @pytest.mark.asyncio
    async def test_iso_week_in_title(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (200, CREATED_TASK)

        await client.create_task("Report {ISO Week}", "L1")

        assert re.fullmatch(r"Report \d{4}-W\d{2}", _body(fake_server.requests[0])["name"])

    @pytest.mark.asyncio
    async def test_due_date_assignee_and_tags(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (200, CREATED_TASK)

        await client.create_task(
            "Call the client", "L1",
            priority=1,
            due_date="2025-03-10T00:00:00Z",
            assignee_id=42,
            tags=["budget", "budget", "q3"],
        )

        body = _body(fake_server.requests[0])
        assert body["due_date"] == 1741564800000
        assert body["priority"] == 1
        assert body["assignees"] == [42]
        assert body["tags"] == ["budget", "q3"]

    @pytest.mark.asyncio
    async def test_remote_error_is_returned(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (400, {"err": "List not found", "ECODE": "ITEM_015"})

        result = await client.create_task("Call the client", "L1")

        assert result["success"] is False
        assert result["error"] == "List not found"
        assert result["status_code"] == 400
        assert result["response"]["ECODE"] == "ITEM_015"

    @pytest.mark.asyncio
    async def test_missing_title_raises_before_request(self, client, fake_server):
        with pytest.raises(ValidationError, match="Task title and list_id are required"):
            await client.create_task("", "L1")
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_bad_priority(self, client):
        with pytest.raises(ValidationError):
            await client.create_task("Call the client", "L1", priority=7)

    @pytest.mark.asyncio
    async def test_bad_due_date(self, client):
        with pytest.raises(ValidationError):
            await client.create_task("Call the client", "L1", due_date="next friday")

    @pytest.mark.asyncio
    async def test_missing_token(self, settings, fake_server):
        client = ClickUpClient(dataclasses.replace(settings, clickup_token=""), fake_server.transport)
        with pytest.raises(ConfigurationError, match="CLICKUP_TOKEN"):
            await client.create_task("Call the client", "L1")
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_unparseable_body(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = lambda request: httpx.Response(200, text="<html>")
        with pytest.raises(TransportError, match="Failed to parse response"):
            await client.create_task("Call the client", "L1")

    @pytest.mark.asyncio
    async def test_non_object_body(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (200, ["abc123"])
        with pytest.raises(TransportError, match="expected a JSON object"):
            await client.create_task("Call the client", "L1")

    @pytest.mark.asyncio
    async def test_network_failure(self, client, fake_server):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        fake_server.routes[("POST", TASK_PATH)] = refuse
        with pytest.raises(TransportError, match="Request failed"):
            await client.create_task("Call the client", "L1")


class TestCreateAuditTask:
    @pytest.mark.asyncio
    async def test_no_recommendations_makes_no_request(self, client, fake_server):
        result = await client.create_audit_task([])

        assert result == {"success": False, "message": "No recommendations to create task for"}
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_audit_task_shape(self, client, fake_server):
        fake_server.routes[("POST", "/api/v2/list/audit-list/task")] = (200, CREATED_TASK)

        result = await client.create_audit_task(
            ["Review search terms", "Check ad copy performance"],
            data_points={"total_leads": 0, "total_search_terms": 4, "total_campaigns": 2},
            analysis_date="2025-03-10T12:00:00+00:00",
        )

        assert result["success"] is True
        body = _body(fake_server.requests[0])
        assert re.fullmatch(r"Ad Audit – Week \d{4}-W\d{2}", body["name"])
        assert body["priority"] == AUDIT_PRIORITY
        assert body["tags"] == AUDIT_TAGS
        due = datetime.fromtimestamp(body["due_date"] / 1000, tz=timezone.utc)
        assert abs(due - (datetime.now(timezone.utc) + timedelta(days=7))) < timedelta(minutes=5)
        assert "1. Review search terms" in body["description"]
        assert "2. Check ad copy performance" in body["description"]
        assert "- Total Campaigns: 2" in body["description"]
        assert "**Analysis Date:** 2025-03-10T12:00:00+00:00" in body["description"]

    @pytest.mark.asyncio
    async def test_explicit_list_wins(self, client, fake_server):
        fake_server.routes[("POST", TASK_PATH)] = (200, CREATED_TASK)

        await client.create_audit_task(["Review search terms"], list_id="L1")

        assert fake_server.paths() == [TASK_PATH]


class TestSearch:
    TASKS = {"tasks": [
        {"id": "t1", "name": "Roof repair", "status": {"status": "open"}, "url": "u1"},
        {"id": "t2", "name": "Roof quote", "status": {"status": "closed"}, "url": "u2"},
    ]}
    DOCS = {"docs": [{"id": "d1", "name": "Roofing SOP", "content": "...", "url": "u3"}]}

    @pytest.mark.asyncio
    async def test_all(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/task")] = (200, self.TASKS)
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = (200, self.DOCS)

        result = await client.search("roof")

        results = result["results"]
        assert result["success"] is True
        assert [t.id for t in results["tasks"]] == ["t1", "t2"]
        assert results["tasks"][0].status == "open"
        assert results["tasks"][0].type == "task"
        assert results["docs"][0].type == "doc"
        assert results["total_results"] == 3
        assert results["space_id"] == "999"
        assert results["query"] == "roof"
        task_request = next(r for r in fake_server.requests if r.url.path.endswith("/task"))
        assert task_request.url.params["search"] == "roof"
        assert task_request.url.params["limit"] == "20"

    @pytest.mark.asyncio
    async def test_tasks_only_never_calls_docs(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/777/task")] = (200, self.TASKS)

        result = await client.search("roof", space_id="777", search_type="tasks", limit=5)

        assert fake_server.paths() == ["/api/v2/space/777/task"]
        assert result["results"]["docs"] == []
        assert result["results"]["total_results"] == 2

    @pytest.mark.asyncio
    async def test_docs_only_never_calls_tasks(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = (200, self.DOCS)

        result = await client.search("roof", search_type="docs")

        assert fake_server.paths() == ["/api/v2/space/999/doc"]
        assert result["results"]["tasks"] == []
        assert result["results"]["total_results"] == 1

    @pytest.mark.asyncio
    async def test_non_object_body_yields_empty_list(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/task")] = (200, ["not", "an", "object"])
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = (200, self.DOCS)

        result = await client.search("roof")

        assert result["results"]["tasks"] == []
        assert result["results"]["total_results"] == 1

    @pytest.mark.asyncio
    async def test_failed_half_yields_empty_list(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/task")] = (500, {"err": "boom"})
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = (200, self.DOCS)

        result = await client.search("roof")

        assert result["success"] is True
        assert result["results"]["tasks"] == []
        assert result["results"]["total_results"] == 1

    @pytest.mark.asyncio
    async def test_network_failure_yields_empty_list(self, client, fake_server):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        fake_server.routes[("GET", "/api/v2/space/999/task")] = refuse
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = refuse

        result = await client.search("roof")

        assert result["results"]["total_results"] == 0

    @pytest.mark.asyncio
    async def test_validation(self, client, fake_server):
        with pytest.raises(ValidationError):
            await client.search("   ")
        with pytest.raises(ValidationError):
            await client.search("roof", search_type="comments")
        with pytest.raises(ValidationError):
            await client.search("roof", limit=0)
        assert fake_server.requests == []


class TestListContainers:
    @pytest.mark.asyncio
    async def test_success(self, client, fake_server):
        lists = [{"id": "L1", "name": "Audits"}, {"id": "L2", "name": "Leads"}]
        fake_server.routes[("GET", "/api/v2/space/999/list")] = (200, {"lists": lists})

        result = await client.list_containers()

        assert result == {"success": True, "lists": lists}

    @pytest.mark.asyncio
    async def test_failure(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/5/list")] = (401, {"err": "Token invalid"})

        result = await client.list_containers("5")

        assert result["success"] is False
        assert result["error"] == "Token invalid"
        assert result["status_code"] == 401
        assert result["lists"] == []

    @pytest.mark.asyncio
    async def test_non_object_body(self, client, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/list")] = (200, "lists")
        with pytest.raises(TransportError):
            await client.list_containers()


class TestGetTaskContext:
    @pytest.mark.asyncio
    async def test_success(self, client, fake_server):
        task = dict(CREATED_TASK, date_created="1700000000000", date_updated="1700000500000")
        fake_server.routes[("GET", "/api/v2/task/abc123")] = (200, task)

        result = await client.get_task_context("abc123")

        context = result["context"]
        assert result["success"] is True
        assert result["task"]["id"] == "abc123"
        assert context.title == "Call the client"
        assert context.status == "to do"
        assert context.created_at == "1700000000000"
        assert context.updated_at == "1700000500000"

    @pytest.mark.asyncio
    async def test_not_found(self, client, fake_server):
        result = await client.get_task_context("missing")

        assert result["success"] is False
        assert result["status_code"] == 404

    @pytest.mark.asyncio
    async def test_requires_task_id(self, client):
        with pytest.raises(ValidationError):
            await client.get_task_context("")
