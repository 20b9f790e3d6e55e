# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes every tool in tools/registry.py over MCP.  Each tool below is a
#   thin wrapper: it gathers its typed arguments into a dict and hands them
#   to dispatcher.invoke(), which validates, calls the adapter, logs, and
#   returns the uniform envelope:
#
#     {"success": True,  "data": ..., "message": "..."}
#     {"success": False, "error": "..."}
#
# HOW IT WORKS (the flow):
#   1. An MCP client (Claude Desktop, an agent, the inspector) lists tools
#   2. It calls one by name, e.g. "get_ad_spend"
#   3. FastMCP routes the call to the decorated function below
#   4. The function forwards to the dispatcher and returns the envelope
#
# TOOL NAMING CONVENTIONS:
#   - list_* / get_* / fetch_*  → Read-only retrieval (safe to retry)
#   - search_* / lookup_*       → Query with filters (safe to retry)
#   - analyze_*                 → Compute recommendations (safe to retry)
#   - create_* / run_*          → WRITE to ClickUp.  Not idempotent: calling
#                                 twice creates two tasks.
#
# RUNNING THIS SERVER:
#     python -m tools.mcp_server        (stdio transport)
# =============================================================================

import logging
import sys
from typing import Optional

from fastmcp import FastMCP

from core.config import load_settings
from tools.registry import build_dispatcher

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT is the MCP transport, so logs go to STDERR.  Anything printed to
# stdout would corrupt the JSON-RPC stream.
# =============================================================================
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

# Settings are read once; missing credentials only surface when a tool
# that needs them is called.
dispatcher = build_dispatcher(load_settings())

mcp = FastMCP("media-assistant")


# =============================================================================
# Google Ads tools
# =============================================================================
@mcp.tool()
async def list_google_ads_accounts() -> dict:
    """List all accessible Google Ads accounts (MCC and client accounts).

    Returns:
        data: list of {customer_id, resource_name, is_manager}.  The first
        account returned by Google is flagged as the manager.
    """
    return await dispatcher.invoke("list_google_ads_accounts", {})


@mcp.tool()
async def get_account_info(customer_id: str) -> dict:
    """Get name, currency, time zone and flags for one Google Ads account.

    Args:
        customer_id: Google Ads customer ID, with or without dashes.
    """
    return await dispatcher.invoke("get_account_info", {"customer_id": customer_id})


@mcp.tool()
async def get_ad_spend(customer_id: str, days: int = 7) -> dict:
    """Get total and per-campaign spend, clicks, impressions and conversions.

    Args:
        customer_id: Google Ads customer ID.
        days: How many days to look back (default 7).
    """
    return await dispatcher.invoke("get_ad_spend", {"customer_id": customer_id, "days": days})


@mcp.tool()
async def get_keyword_performance(customer_id: str, days: int = 7) -> dict:
    """Get the top 50 keywords by cost with clicks, CPC and quality score.

    Args:
        customer_id: Google Ads customer ID.
        days: How many days to look back (default 7).
    """
    return await dispatcher.invoke(
        "get_keyword_performance", {"customer_id": customer_id, "days": days}
    )


@mcp.tool()
async def fetch_google_ads_report(
    customer_id: str,
    time_range: str = "LAST_7_DAYS",
    query_type: str = "campaigns",
) -> dict:
    """Fetch up to 100 rows of campaigns, keywords, search_terms or ads.

    Args:
        customer_id: Google Ads customer ID.
        time_range: GAQL range such as LAST_7_DAYS, LAST_30_DAYS, THIS_MONTH.
        query_type: campaigns | keywords | search_terms | ads.
    """
    return await dispatcher.invoke(
        "fetch_google_ads_report",
        {"customer_id": customer_id, "time_range": time_range, "query_type": query_type},
    )


@mcp.tool()
async def analyze_google_ads(customer_id: str, time_range: str = "LAST_7_DAYS") -> dict:
    """Pull live campaign, keyword and search-term data and audit it.

    Returns recommendations such as low-CTR campaigns or off-topic search
    terms that should become negative keywords.
    """
    return await dispatcher.invoke(
        "analyze_google_ads", {"customer_id": customer_id, "time_range": time_range}
    )


@mcp.tool()
async def analyze_google_ads_report(report: dict) -> dict:
    """Audit an exported report.

    Args:
        report: {"leads": [...], "search_terms": [...], "campaigns": [...]}.
                Leads carry a "date"; campaigns carry ctr and conversions.
    """
    return await dispatcher.invoke("analyze_google_ads_report", {"report": report})


@mcp.tool()
async def lookup_google_ads_account(name: str) -> dict:
    """Find a client account's customer ID by its name (case-insensitive)."""
    return await dispatcher.invoke("lookup_google_ads_account", {"name": name})


# =============================================================================
# ClickUp tools
# =============================================================================
@mcp.tool()
async def create_clickup_task(
    title: str,
    list_id: str,
    description: str = "",
    priority: int = 3,
    due_date: Optional[str] = None,
    assignee_id: Optional[str] = None,
    tags: Optional[list[str]] = None,
) -> dict:
    """Create a ClickUp task.

    Args:
        title: Task title.  "{ISO Week}" is replaced with e.g. "2025-W07".
        list_id: The ClickUp list to create the task in.
        description: Markdown body.
        priority: 1=urgent, 2=high, 3=normal, 4=low.
        due_date: ISO-8601 date or datetime.
        assignee_id: ClickUp user ID.
        tags: Tag names.
    """
    return await dispatcher.invoke("create_clickup_task", {
        "title": title,
        "list_id": list_id,
        "description": description,
        "priority": priority,
        "due_date": due_date,
        "assignee_id": assignee_id,
        "tags": tags,
    })


@mcp.tool()
async def create_ad_audit_task(
    recommendations: list[str],
    list_id: Optional[str] = None,
    data_points: Optional[dict] = None,
    analysis_date: Optional[str] = None,
    assignee_id: Optional[str] = None,
) -> dict:
    """Create an "Ad Audit – Week <ISO week>" task listing the recommendations.

    The task is high priority, tagged ad-audit/automated, due in 7 days.
    With no recommendations nothing is created.
    """
    return await dispatcher.invoke("create_ad_audit_task", {
        "recommendations": recommendations,
        "list_id": list_id,
        "data_points": data_points,
        "analysis_date": analysis_date,
        "assignee_id": assignee_id,
    })


@mcp.tool()
async def run_google_ads_audit(
    customer_id: str,
    time_range: str = "LAST_7_DAYS",
    list_id: Optional[str] = None,
) -> dict:
    """Analyze live Google Ads data, then file the results as a ClickUp audit task."""
    return await dispatcher.invoke("run_google_ads_audit", {
        "customer_id": customer_id,
        "time_range": time_range,
        "list_id": list_id,
    })


@mcp.tool()
async def search_clickup(
    query: str,
    space_id: Optional[str] = None,
    type: str = "all",
    limit: int = 20,
) -> dict:
    """Search a ClickUp space.

    Args:
        query: Text to search for.
        space_id: Defaults to CLICKUP_SPACE_ID.
        type: tasks | docs | all.
        limit: Max results per kind.
    """
    return await dispatcher.invoke("search_clickup", {
        "query": query,
        "space_id": space_id,
        "type": type,
        "limit": limit,
    })


@mcp.tool()
async def get_clickup_lists(space_id: Optional[str] = None) -> dict:
    """List the lists in a ClickUp space (defaults to CLICKUP_SPACE_ID)."""
    return await dispatcher.invoke("get_clickup_lists", {"space_id": space_id})


@mcp.tool()
async def get_clickup_task(task_id: str) -> dict:
    """Fetch a ClickUp task plus a flattened context (title, status, tags...)."""
    return await dispatcher.invoke("get_clickup_task", {"task_id": task_id})


if __name__ == "__main__":
    mcp.run()
