# =============================================================================
# core/clickup.py  —  ClickUp (Task-Tracker) Adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Maps a handful of task-management operations onto the ClickUp REST API
#   v2 and normalizes the answers into core/models.py shapes:
#
#     create_task        POST /list/{list_id}/task
#     create_audit_task  (formats an audit report, then create_task)
#     search             GET  /space/{space_id}/task?search=&limit=
#                        GET  /space/{space_id}/doc?search=&limit=
#     list_containers    GET  /space/{space_id}/list
#     get_task_context   GET  /task/{task_id}
#
# HOW FAILURES COME BACK:
#   - Missing token / missing arguments  →  raised (ConfigurationError,
#     ValidationError) before any request is made.
#   - ClickUp answered with a non-2xx    →  RETURNED as a dict with
#     success=False, the ClickUp error text, and the status code.
#   - Network error / body is not JSON   →  raised TransportError.
#   - search() is the exception to the exception: each sub-query that
#     fails for any reason just contributes an empty list.
#
# AUTH:
#   ClickUp personal tokens go straight into the Authorization header
#   (no "Bearer " prefix).
# =============================================================================

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional, Union

import httpx

from core.config import Settings
from core.errors import ConfigurationError, TransportError, ValidationError, remote_failure
from core.models import DocSummary, Task, TaskContext, TaskSummary
from core.normalize import fill_iso_week, to_int

logger = logging.getLogger(__name__)

CLICKUP_API_BASE = "https://api.clickup.com/api/v2"

DEFAULT_STATUS = "to do"
DEFAULT_PRIORITY = 3                   # normal
AUDIT_PRIORITY = 2                     # high
AUDIT_TITLE = "Ad Audit – Week {ISO Week}"
AUDIT_TAGS = ["ad-audit", "automated", "google-ads"]
AUDIT_DUE_IN = timedelta(days=7)
AUDIT_ATTRIBUTION = "*Task created automatically by Contractor Scale AI Media Assistant*"

SEARCH_TYPES = ("tasks", "docs", "all")
DEFAULT_SEARCH_LIMIT = 20


# =============================================================================
# Response mapping helpers
# =============================================================================
def _status_text(status: Any) -> Optional[str]:
    # ClickUp nests the status: {"status": "to do", "color": "#d3d3d3", ...}
    if isinstance(status, dict):
        return status.get("status")
    return status


def _tag_names(tags: Optional[Iterable]) -> list[str]:
    names: list[str] = []
    for tag in tags or []:
        name = tag.get("name") if isinstance(tag, dict) else tag
        if name and name not in names:
            names.append(str(name))
    return names


def _assignee_ids(assignees: Optional[Iterable]) -> list:
    return [a.get("id") if isinstance(a, dict) else a for a in assignees or []]


def _task_from_payload(payload: dict) -> Task:
    return Task(
        id=str(payload.get("id") or ""),
        name=payload.get("name") or "",
        description=payload.get("description") or "",
        status=_status_text(payload.get("status")) or DEFAULT_STATUS,
        priority=_priority_level(payload.get("priority")),
        due_date=to_int(payload.get("due_date"), default=None) if payload.get("due_date") else None,
        assignees=_assignee_ids(payload.get("assignees")),
        tags=_tag_names(payload.get("tags")),
        url=payload.get("url") or "",
    )


def _priority_level(priority: Any) -> int:
    # Create responses carry {"id": "2", "priority": "high", ...}
    if isinstance(priority, dict):
        priority = priority.get("id")
    return to_int(priority, default=DEFAULT_PRIORITY)


def _to_epoch_ms(due: Union[str, datetime, int, None]) -> Optional[int]:
    if due is None or due == "":
        return None
    if isinstance(due, (int, float)) and not isinstance(due, bool):
        return int(due)
    if isinstance(due, str):
        try:
            due = datetime.fromisoformat(due.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"due_date is not an ISO-8601 timestamp: {due!r}")
    if not isinstance(due, datetime):
        raise ValidationError(f"Unsupported due_date value: {due!r}")
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return int(due.timestamp() * 1000)


def _error_text(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict) and payload.get("err"):
        return payload["err"]
    return fallback


def format_audit_description(
    recommendations: list[str],
    data_points: Optional[dict] = None,
    analysis_date: Optional[str] = None,
) -> str:
    """Render an audit as the Markdown body of a ClickUp task."""
    lines = [
        "## Google Ads Audit Report",
        "",
        f"**Analysis Date:** {analysis_date or datetime.now(timezone.utc).isoformat()}",
        "",
    ]
    if data_points:
        lines += [
            "### Data Summary",
            f"- Total Leads: {data_points.get('total_leads', 0)}",
            f"- Total Search Terms: {data_points.get('total_search_terms', 0)}",
            f"- Total Campaigns: {data_points.get('total_campaigns', 0)}",
            "",
        ]
    lines.append("### Recommendations")
    lines += [f"{i}. {rec}" for i, rec in enumerate(recommendations, start=1)]
    lines += ["", "---", AUDIT_ATTRIBUTION]
    return "\n".join(lines)


# =============================================================================
# The adapter
# =============================================================================
class ClickUpClient:
    """Async ClickUp API v2 adapter.

    Args:
        settings: Process configuration (token, default space, audit list).
        transport: Optional httpx transport; tests pass an httpx.MockTransport.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------
    def _require_token(self) -> str:
        if not self.settings.clickup_token:
            raise ConfigurationError("CLICKUP_TOKEN environment variable is required")
        return self.settings.clickup_token

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=CLICKUP_API_BASE,
            headers={"Authorization": self._require_token()},
            timeout=self.settings.http_timeout_seconds,
            transport=self._transport,
        )

    @staticmethod
    async def _send(client: httpx.AsyncClient, method: str, path: str, **kwargs) -> tuple[int, Any]:
        """One request → (status code, parsed JSON body)."""
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"Failed to parse response: {exc}") from exc
        if not isinstance(payload, dict):
            raise TransportError(
                f"Failed to parse response: expected a JSON object, got {type(payload).__name__}"
            )
        return response.status_code, payload

    @staticmethod
    def _ok(status: int) -> bool:
        return 200 <= status < 300

    # -------------------------------------------------------------------------
    # create_task
    # -------------------------------------------------------------------------
    async def create_task(
        self,
        title: str,
        list_id: str,
        description: str = "",
        priority: Optional[int] = None,
        due_date: Union[str, datetime, int, None] = None,
        assignee_id: Optional[Any] = None,
        tags: Optional[list[str]] = None,
    ) -> dict:
        """Create a task in a ClickUp list.

        A literal ``{ISO Week}`` in the title is replaced (once) with the
        current week, e.g. "Ad Audit – Week 2026-W42".
        """
        self._require_token()
        if not title or not list_id:
            raise ValidationError("Task title and list_id are required")

        priority = DEFAULT_PRIORITY if priority is None else to_int(priority, default=-1)
        if priority not in (1, 2, 3, 4):
            raise ValidationError("priority must be 1 (urgent), 2 (high), 3 (normal) or 4 (low)")

        payload = {
            "name": fill_iso_week(title),
            "description": description or "",
            "status": DEFAULT_STATUS,
            "priority": priority,
            "due_date": _to_epoch_ms(due_date),
            "assignees": [assignee_id] if assignee_id else [],
            "tags": _tag_names(tags),
        }

        async with self._http() as client:
            status, body = await self._send(client, "POST", f"/list/{list_id}/task", json=payload)

        if not self._ok(status):
            logger.warning("ClickUp create task failed (%s): %s", status, _error_text(body, body))
            return remote_failure(_error_text(body, "Failed to create task"), status, response=body)

        task = _task_from_payload(body)
        logger.info("ClickUp task created: %s", task.id)
        return {
            "success": True,
            "task": task,
            "task_id": task.id,
            "task_url": task.url,
            "message": "Task created successfully",
        }

    # -------------------------------------------------------------------------
    # create_audit_task
    # -------------------------------------------------------------------------
    async def create_audit_task(
        self,
        recommendations: Optional[list[str]],
        list_id: Optional[str] = None,
        data_points: Optional[dict] = None,
        analysis_date: Optional[str] = None,
        assignee_id: Optional[Any] = None,
    ) -> dict:
        """Turn a Google Ads audit into a high-priority ClickUp task due in a week."""
        if not recommendations:
            return {"success": False, "message": "No recommendations to create task for"}

        due = datetime.now(timezone.utc) + AUDIT_DUE_IN
        return await self.create_task(
            title=AUDIT_TITLE,
            list_id=list_id or self.settings.clickup_audit_list_id,
            description=format_audit_description(recommendations, data_points, analysis_date),
            priority=AUDIT_PRIORITY,
            due_date=due,
            assignee_id=assignee_id,
            tags=list(AUDIT_TAGS),
        )

    # -------------------------------------------------------------------------
    # search
    # -------------------------------------------------------------------------
    async def search(
        self,
        query: str,
        space_id: Optional[str] = None,
        search_type: str = "all",
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> dict:
        """Search a space for tasks, docs, or both.

        The task and doc queries run concurrently.  Either one failing just
        yields an empty list for that half of the results.
        """
        self._require_token()
        if not query or not str(query).strip():
            raise ValidationError("Search query is required")
        if search_type not in SEARCH_TYPES:
            raise ValidationError(f"type must be one of {', '.join(SEARCH_TYPES)}")
        limit = to_int(limit, default=DEFAULT_SEARCH_LIMIT)
        if limit <= 0:
            raise ValidationError("limit must be a positive integer")

        space_id = space_id or self.settings.clickup_space_id

        async with self._http() as client:
            jobs = []
            if search_type in ("all", "tasks"):
                jobs.append(self._search_tasks(client, space_id, query, limit))
            if search_type in ("all", "docs"):
                jobs.append(self._search_docs(client, space_id, query, limit))
            found = await asyncio.gather(*jobs)

        tasks: list[TaskSummary] = []
        docs: list[DocSummary] = []
        for batch in found:
            for hit in batch:
                (tasks if hit.type == "task" else docs).append(hit)

        return {
            "success": True,
            "results": {
                "tasks": tasks,
                "docs": docs,
                "total_results": len(tasks) + len(docs),
                "query": query,
                "space_id": space_id,
            },
        }

    async def _search_tasks(self, client, space_id, query, limit) -> list[TaskSummary]:
        try:
            status, body = await self._send(
                client, "GET", f"/space/{space_id}/task", params={"search": query, "limit": limit}
            )
            if not self._ok(status):
                logger.warning("ClickUp task search returned %s", status)
                return []
            return [
                TaskSummary(
                    id=str(task.get("id")),
                    name=task.get("name"),
                    description=task.get("description"),
                    status=_status_text(task.get("status")),
                    priority=task.get("priority"),
                    due_date=task.get("due_date"),
                    assignees=task.get("assignees") or [],
                    tags=task.get("tags") or [],
                    url=task.get("url"),
                )
                for task in body.get("tasks") or []
            ]
        except (TransportError, AttributeError, TypeError) as exc:
            logger.warning("ClickUp task search failed: %s", exc)
            return []

    async def _search_docs(self, client, space_id, query, limit) -> list[DocSummary]:
        try:
            status, body = await self._send(
                client, "GET", f"/space/{space_id}/doc", params={"search": query, "limit": limit}
            )
            if not self._ok(status):
                logger.warning("ClickUp doc search returned %s", status)
                return []
            return [
                DocSummary(
                    id=str(doc.get("id")),
                    name=doc.get("name"),
                    content=doc.get("content"),
                    url=doc.get("url"),
                )
                for doc in body.get("docs") or []
            ]
        except (TransportError, AttributeError, TypeError) as exc:
            logger.warning("ClickUp doc search failed: %s", exc)
            return []

    # -------------------------------------------------------------------------
    # list_containers
    # -------------------------------------------------------------------------
    async def list_containers(self, space_id: Optional[str] = None) -> dict:
        """List the ClickUp lists (task containers) in a space."""
        self._require_token()
        space_id = space_id or self.settings.clickup_space_id

        async with self._http() as client:
            status, body = await self._send(client, "GET", f"/space/{space_id}/list")

        if not self._ok(status):
            return remote_failure(_error_text(body, "Failed to fetch lists"), status, lists=[])
        return {"success": True, "lists": body.get("lists") or []}

    # -------------------------------------------------------------------------
    # get_task_context
    # -------------------------------------------------------------------------
    async def get_task_context(self, task_id: str) -> dict:
        """Fetch one task and flatten it into a TaskContext."""
        self._require_token()
        if not task_id:
            raise ValidationError("task_id is required")

        async with self._http() as client:
            status, body = await self._send(client, "GET", f"/task/{task_id}")

        if not self._ok(status):
            return remote_failure(_error_text(body, "Failed to fetch task"), status)

        context = TaskContext(
            title=body.get("name") or "",
            description=body.get("description"),
            status=_status_text(body.get("status")),
            priority=body.get("priority"),
            assignees=body.get("assignees") or [],
            tags=body.get("tags") or [],
            due_date=body.get("due_date"),
            created_at=body.get("date_created"),
            updated_at=body.get("date_updated"),
        )
        return {"success": True, "task": body, "context": context}
