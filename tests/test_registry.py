"""
Tests for the tool dispatcher: the tool table and the invoke() envelope.
"""

import dataclasses
from dataclasses import dataclass

import pytest

from core.analysis import NO_LEAD_DATA
from core.clickup import ClickUpClient
from core.google_ads import GoogleAdsService
from tools import registry
from tools.registry import ParamSpec, ToolDescriptor, ToolDispatcher, build_dispatcher, to_jsonable

EXPECTED_TOOLS = {
    "list_google_ads_accounts",
    "get_account_info",
    "get_ad_spend",
    "get_keyword_performance",
    "fetch_google_ads_report",
    "analyze_google_ads",
    "analyze_google_ads_report",
    "lookup_google_ads_account",
    "create_clickup_task",
    "create_ad_audit_task",
    "run_google_ads_audit",
    "search_clickup",
    "get_clickup_lists",
    "get_clickup_task",
}


@pytest.fixture
def build(settings, fake_server, make_query_client):
    """Dispatcher over a fake ClickUp server and a fake Google Ads client."""
    def _build(query_client=None, **overrides):
        config = dataclasses.replace(settings, **overrides)
        return build_dispatcher(
            config,
            clickup=ClickUpClient(config, transport=fake_server.transport),
            google_ads=GoogleAdsService(config, query_client or make_query_client(
                error=RuntimeError("offline"))),
        )
    return _build


class TestToolTable:
    def test_all_tools_listed(self, build):
        names = {descriptor.name for descriptor in build().list_tools()}
        assert names == EXPECTED_TOOLS

    def test_json_schema(self, build):
        descriptor = build().get("create_clickup_task")
        schema = descriptor.json_schema()
        assert schema["type"] == "object"
        assert schema["required"] == ["title", "list_id"]
        assert schema["properties"]["priority"]["default"] == 3

    def test_duplicate_registration_rejected(self):
        dispatcher = ToolDispatcher()
        dispatcher.register(ToolDescriptor("ping", "Ping"), None)
        with pytest.raises(ValueError):
            dispatcher.register(ToolDescriptor("ping", "Ping again"), None)


class TestInvoke:
    @pytest.mark.asyncio
    async def test_unknown_tool(self, build, fake_server):
        result = await build().invoke("delete_everything", {})
        assert result == {"success": False, "error": "Unknown tool: delete_everything"}
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_arguments_must_be_an_object(self, build, fake_server):
        dispatcher = build()
        for args in ("abc", [1, 2], 42):
            result = await dispatcher.invoke("search_clickup", args)
            assert result == {"success": False, "error": "Tool arguments must be an object"}
        assert await ToolDispatcher().invoke("unknown_tool", "abc") == {
            "success": False,
            "error": "Tool arguments must be an object",
        }
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, build):
        result = await build().invoke("get_ad_spend", {})
        assert result == {"success": False, "error": "customer_id is required"}

    @pytest.mark.asyncio
    async def test_success_envelope_with_defaults(self, build):
        result = await build().invoke("get_ad_spend", {"customer_id": "1234567890"})

        assert result["success"] is True
        assert result["message"] == "Ad spend data retrieved for 1234567890 (7 days)"
        # Offline fake → sample data, serialized to plain dicts
        assert result["data"]["total_spend"] == 1250.50
        assert result["data"]["period"] == "7 days"
        assert isinstance(result["data"]["campaigns"][0], dict)

    @pytest.mark.asyncio
    async def test_raised_error_becomes_envelope(self, build):
        dispatcher = build(google_ads_login_customer_id="")

        result = await dispatcher.invoke("get_ad_spend", {"customer_id": "1234567890"})

        assert result == {
            "success": False,
            "error": "MCC Customer ID not configured (GOOGLE_ADS_LOGIN_CUSTOMER_ID)",
        }

    @pytest.mark.asyncio
    async def test_none_args(self, build):
        result = await build().invoke("list_google_ads_accounts", None)
        assert result == {"success": True, "data": [], "message": "Found 0 accessible accounts"}

    @pytest.mark.asyncio
    async def test_logging_failure_does_not_change_envelope(self, build, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("log sink down")

        monkeypatch.setattr(registry, "_log_request", broken)
        monkeypatch.setattr(registry, "_log_response", broken)

        result = await build().invoke("nope", {})

        assert result == {"success": False, "error": "Unknown tool: nope"}


class TestTools:
    @pytest.mark.asyncio
    async def test_analyze_report(self, build):
        result = await build().invoke("analyze_google_ads_report", {"report": {"leads": []}})

        assert result["success"] is True
        assert NO_LEAD_DATA in result["data"]["recommendations"]
        assert result["data"]["data_points"]["total_leads"] == 0

    @pytest.mark.asyncio
    async def test_create_task_remote_failure_is_data(self, build, fake_server):
        fake_server.routes[("POST", "/api/v2/list/L1/task")] = (400, {"err": "List not found"})

        result = await build().invoke("create_clickup_task", {"title": "Call", "list_id": "L1"})

        assert result["success"] is True
        assert result["data"]["success"] is False
        assert result["data"]["status_code"] == 400
        assert result["message"] == "List not found"

    @pytest.mark.asyncio
    async def test_search_fills_defaults(self, build, fake_server):
        fake_server.routes[("GET", "/api/v2/space/999/task")] = (200, {"tasks": [{"id": "t1", "name": "Roof"}]})
        fake_server.routes[("GET", "/api/v2/space/999/doc")] = (200, {"docs": []})

        result = await build().invoke("search_clickup", {"query": "roof"})

        assert result["success"] is True
        assert result["data"]["results"]["total_results"] == 1
        assert result["data"]["results"]["tasks"][0]["type"] == "task"
        assert result["message"] == "Found 1 results for 'roof'"

    @pytest.mark.asyncio
    async def test_lookup_account(self, build, make_query_client):
        rows = [{"customerClient": {"id": "5556667777", "descriptiveName": "JRA Construction"}}]
        dispatcher = build(query_client=make_query_client(rows=rows))

        result = await dispatcher.invoke("lookup_google_ads_account", {"name": "JRA Construction"})

        assert result["data"] == {"name": "JRA Construction", "customer_id": "5556667777"}

    @pytest.mark.asyncio
    async def test_run_audit_files_task(self, build, fake_server):
        fake_server.routes[("POST", "/api/v2/list/audit-list/task")] = (
            200, {"id": "a1", "name": "Ad Audit", "url": "https://app.clickup.com/t/a1"},
        )

        result = await build().invoke("run_google_ads_audit", {"customer_id": "1234567890"})

        assert result["success"] is True
        assert result["data"]["task"]["task_id"] == "a1"
        assert NO_LEAD_DATA in result["data"]["audit"]["recommendations"]


class TestToJsonable:
    def test_nested_dataclasses(self):
        @dataclass
        class Inner:
            value: int

        @dataclass
        class Outer:
            items: list
            spec: ParamSpec

        converted = to_jsonable({"outer": Outer([Inner(1), (Inner(2),)], ParamSpec("string", "x"))})

        assert converted == {"outer": {
            "items": [{"value": 1}, [{"value": 2}]],
            "spec": {"type": "string", "description": "x", "required": False, "default": None},
        }}
