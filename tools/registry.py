# =============================================================================
# tools/registry.py  —  Tool Dispatcher (name → schema → adapter call)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Holds the static table of tools this server offers.  Each entry has:
#     - a ToolDescriptor (name, description, input schema)
#     - an async handler that calls ONE adapter operation in core/
#
#   ToolDispatcher.invoke(name, args) is the single entry point:
#
#     unknown name          →  {"success": False, "error": "Unknown tool: <name>"}
#     missing required arg  →  {"success": False, "error": "<arg> is required"}
#     handler returns       →  {"success": True, "data": ..., "message": ...}
#     handler raises        →  {"success": False, "error": str(exc)}
#     args not an object    →  {"success": False, "error": "Tool arguments must be an object"}
#
#   invoke() NEVER raises.  A caller can treat every tool call the same way.
#
# LOGGING:
#   Every call is logged to STDERR (stdout carries the MCP protocol):
#     CYAN   → tool name + arguments
#     YELLOW → intermediate status
#     GREEN  → response envelope
#   A failure inside the logging code cannot change the returned envelope.
# =============================================================================

import dataclasses
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from core.analysis import analyze_report
from core.clickup import ClickUpClient
from core.config import Settings
from core.errors import ValidationError
from core.google_ads import GoogleAdsService

logger = logging.getLogger(__name__)

# ANSI color codes for terminal output
_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color


# =============================================================================
# Descriptors
# =============================================================================
@dataclass
class ParamSpec:
    """One input parameter of a tool."""

    type: str                          # JSON-schema type: string, integer, array, ...
    description: str
    required: bool = False
    default: Any = None


@dataclass
class ToolDescriptor:
    """What a client sees in list_tools()."""

    name: str
    description: str
    input_schema: dict[str, ParamSpec] = field(default_factory=dict)

    def json_schema(self) -> dict:
        """The input schema in MCP / JSON-schema form."""
        properties = {}
        for name, spec in self.input_schema.items():
            prop = {"type": spec.type, "description": spec.description}
            if spec.default is not None:
                prop["default"] = spec.default
            properties[name] = prop
        return {
            "type": "object",
            "properties": properties,
            "required": [n for n, s in self.input_schema.items() if s.required],
        }

    def bind(self, args: dict) -> dict:
        """Check required keys are present and fill in defaults."""
        bound = dict(args)
        for name, spec in self.input_schema.items():
            value = bound.get(name)
            if spec.required and (value is None or value == ""):
                raise ValidationError(f"{name} is required")
            if value is None and spec.default is not None:
                bound[name] = spec.default
        return bound


Handler = Callable[[dict], Awaitable[tuple[Any, str]]]


# =============================================================================
# Serialization
# =============================================================================
def to_jsonable(value: Any) -> Any:
    """Dataclasses (possibly nested in dicts/lists) → plain JSON types."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


# =============================================================================
# Log helpers
# =============================================================================
def _log_request(tool_name: str, params: dict) -> None:
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> None:
    logger.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, separators=(',', ':'), default=str)}{_RESET}"
    )


def _quietly(log_call: Callable, *args) -> None:
    # Observability must not alter the envelope
    try:
        log_call(*args)
    except Exception:  # noqa: BLE001
        pass


# =============================================================================
# The dispatcher
# =============================================================================
class ToolDispatcher:
    """Static tool table plus the uniform invoke() envelope."""

    def __init__(self):
        self._tools: dict[str, tuple[ToolDescriptor, Handler]] = {}

    def register(self, descriptor: ToolDescriptor, handler: Handler) -> None:
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = (descriptor, handler)

    def tool(self, name: str, description: str, /, **params: ParamSpec):
        """Decorator form of register()."""
        def decorator(func: Handler) -> Handler:
            self.register(ToolDescriptor(name, description, dict(params)), func)
            return func
        return decorator

    def list_tools(self) -> list[ToolDescriptor]:
        return [descriptor for descriptor, _ in self._tools.values()]

    def get(self, name: str) -> Optional[ToolDescriptor]:
        entry = self._tools.get(name)
        return entry[0] if entry else None

    async def invoke(self, name: str, args: Optional[Mapping] = None) -> dict:
        if args is None:
            args = {}
        if not isinstance(args, Mapping):
            _quietly(_log_request, name, {"args": args})
            result = {"success": False, "error": "Tool arguments must be an object"}
            _quietly(_log_response, name, result)
            return result
        args = dict(args)
        _quietly(_log_request, name, args)

        entry = self._tools.get(name)
        if entry is None:
            result = {"success": False, "error": f"Unknown tool: {name}"}
        else:
            descriptor, handler = entry
            try:
                data, message = await handler(descriptor.bind(args))
                result = {"success": True, "data": to_jsonable(data), "message": message}
                _quietly(_log_status, message)
            except Exception as exc:
                _quietly(logger.error, "MCP Tool Error (%s): %s", name, exc)
                result = {"success": False, "error": str(exc)}

        _quietly(_log_response, name, result)
        return result


# =============================================================================
# The tool table
# =============================================================================
def build_dispatcher(
    settings: Settings,
    clickup: Optional[ClickUpClient] = None,
    google_ads: Optional[GoogleAdsService] = None,
) -> ToolDispatcher:
    """Wire every tool to its adapter.  Adapters can be injected for tests."""
    clickup = clickup or ClickUpClient(settings)
    google_ads = google_ads or GoogleAdsService(settings)
    dispatcher = ToolDispatcher()
    tool = dispatcher.tool

    customer_id = ParamSpec("string", "The Google Ads customer ID (dashes optional)", required=True)
    days = ParamSpec("integer", "Number of days to look back (default: 7)", default=7)
    time_range = ParamSpec("string", "GAQL date range, e.g. LAST_7_DAYS or LAST_30_DAYS",
                           default="LAST_7_DAYS")

    # -------------------------------------------------------------------------
    # Google Ads
    # -------------------------------------------------------------------------
    @tool("list_google_ads_accounts",
          "List all accessible Google Ads accounts (MCC and client accounts)")
    async def list_google_ads_accounts(args):
        accounts = await google_ads.list_accounts()
        return accounts, f"Found {len(accounts)} accessible accounts"

    @tool("get_account_info",
          "Get detailed information about a specific Google Ads account",
          customer_id=customer_id)
    async def get_account_info(args):
        info = await google_ads.get_account_info(args["customer_id"])
        return info, f"Account info retrieved for {args['customer_id']}"

    @tool("get_ad_spend",
          "Get ad spend data for a specific account over a time period",
          customer_id=customer_id, days=days)
    async def get_ad_spend(args):
        spend = await google_ads.get_ad_spend(args["customer_id"], args["days"])
        return spend, f"Ad spend data retrieved for {args['customer_id']} ({args['days']} days)"

    @tool("get_keyword_performance",
          "Get keyword performance data for a specific account",
          customer_id=customer_id, days=days)
    async def get_keyword_performance(args):
        keywords = await google_ads.get_keyword_performance(args["customer_id"], args["days"])
        return keywords, (f"Keyword performance data retrieved for {args['customer_id']} "
                          f"({args['days']} days)")

    @tool("fetch_google_ads_report",
          "Fetch a top-100 report of campaigns, keywords, search terms, or ads",
          customer_id=customer_id,
          time_range=time_range,
          query_type=ParamSpec("string", "One of: campaigns, keywords, search_terms, ads",
                               default="campaigns"))
    async def fetch_google_ads_report(args):
        report = await google_ads.fetch_report_data(
            args["customer_id"], args["time_range"], args["query_type"]
        )
        return report, f"{args['query_type']} report retrieved for {args['customer_id']}"

    @tool("analyze_google_ads",
          "Analyze live campaign, keyword, and search-term data and return audit recommendations",
          customer_id=customer_id, time_range=time_range)
    async def analyze_google_ads(args):
        audit = await google_ads.analyze_live_data(args["customer_id"], args["time_range"])
        return audit, f"{len(audit.recommendations)} recommendations for {args['customer_id']}"

    @tool("analyze_google_ads_report",
          "Analyze an exported report (leads, search_terms, campaigns) and return recommendations",
          report=ParamSpec("object", "Report JSON with leads, search_terms and campaigns",
                           required=True))
    async def analyze_google_ads_report(args):
        audit = analyze_report(args["report"])
        return audit, f"{len(audit.recommendations)} recommendations"

    @tool("lookup_google_ads_account",
          "Find a client account's customer ID by its descriptive name",
          name=ParamSpec("string", "Account name (case-insensitive)", required=True))
    async def lookup_google_ads_account(args):
        found = await google_ads.lookup_account_id(args["name"])
        message = f"Found account {found}" if found else f"No account named {args['name']!r}"
        return {"name": args["name"], "customer_id": found}, message

    # -------------------------------------------------------------------------
    # ClickUp
    # -------------------------------------------------------------------------
    @tool("create_clickup_task",
          "Create a task in a ClickUp list ({ISO Week} in the title becomes the current week)",
          title=ParamSpec("string", "Task title", required=True),
          list_id=ParamSpec("string", "ClickUp list ID", required=True),
          description=ParamSpec("string", "Task body (Markdown)"),
          priority=ParamSpec("integer", "1=urgent, 2=high, 3=normal, 4=low", default=3),
          due_date=ParamSpec("string", "Due date, ISO-8601"),
          assignee_id=ParamSpec("string", "ClickUp user ID to assign"),
          tags=ParamSpec("array", "Tags to apply"))
    async def create_clickup_task(args):
        result = await clickup.create_task(
            title=args["title"],
            list_id=args["list_id"],
            description=args.get("description") or "",
            priority=args["priority"],
            due_date=args.get("due_date"),
            assignee_id=args.get("assignee_id"),
            tags=args.get("tags"),
        )
        return result, result.get("message") or result.get("error") or "Task request sent"

    @tool("create_ad_audit_task",
          "Create a high-priority 'Ad Audit' task from a list of recommendations",
          recommendations=ParamSpec("array", "Recommendations to list in the task", required=True),
          list_id=ParamSpec("string", "ClickUp list ID (defaults to CLICKUP_AUDIT_LIST_ID)"),
          data_points=ParamSpec("object", "total_leads / total_search_terms / total_campaigns"),
          analysis_date=ParamSpec("string", "When the analysis ran, ISO-8601"),
          assignee_id=ParamSpec("string", "ClickUp user ID to assign"))
    async def create_ad_audit_task(args):
        result = await clickup.create_audit_task(
            recommendations=args["recommendations"],
            list_id=args.get("list_id"),
            data_points=args.get("data_points"),
            analysis_date=args.get("analysis_date"),
            assignee_id=args.get("assignee_id"),
        )
        return result, result.get("message") or result.get("error") or "Audit task request sent"

    @tool("run_google_ads_audit",
          "Analyze live Google Ads data and file the recommendations as a ClickUp audit task",
          customer_id=customer_id,
          time_range=time_range,
          list_id=ParamSpec("string", "ClickUp list ID (defaults to CLICKUP_AUDIT_LIST_ID)"))
    async def run_google_ads_audit(args):
        audit = await google_ads.analyze_live_data(args["customer_id"], args["time_range"])
        _quietly(_log_status, f"Audit produced {len(audit.recommendations)} recommendations")
        task = await clickup.create_audit_task(
            recommendations=audit.recommendations,
            list_id=args.get("list_id"),
            data_points=audit.data_points,
            analysis_date=audit.analysis_date,
        )
        return {"audit": audit, "task": task}, task.get("message") or task.get("error") or ""

    @tool("search_clickup",
          "Search a ClickUp space for tasks and/or docs",
          query=ParamSpec("string", "Search text", required=True),
          space_id=ParamSpec("string", "Space to search (defaults to CLICKUP_SPACE_ID)"),
          type=ParamSpec("string", "tasks, docs, or all", default="all"),
          limit=ParamSpec("integer", "Maximum results per kind", default=20))
    async def search_clickup(args):
        result = await clickup.search(
            args["query"], args.get("space_id"), args["type"], args["limit"]
        )
        return result, f"Found {result['results']['total_results']} results for {args['query']!r}"

    @tool("get_clickup_lists",
          "List the ClickUp lists in a space",
          space_id=ParamSpec("string", "Space ID (defaults to CLICKUP_SPACE_ID)"))
    async def get_clickup_lists(args):
        result = await clickup.list_containers(args.get("space_id"))
        return result, f"Found {len(result.get('lists') or [])} lists"

    @tool("get_clickup_task",
          "Fetch a ClickUp task and its flattened context",
          task_id=ParamSpec("string", "ClickUp task ID", required=True))
    async def get_clickup_task(args):
        result = await clickup.get_task_context(args["task_id"])
        return result, f"Task context retrieved for {args['task_id']}"

    return dispatcher
