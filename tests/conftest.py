"""
Shared fixtures: a fully populated Settings, a routable fake HTTP server
for ClickUp / OAuth, and an in-memory Google Ads query client.
"""

from typing import Any, Callable, Optional, Union

import httpx
import pytest

from core.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings with every credential filled in."""
    return Settings(
        clickup_token="pk_test_token",
        clickup_space_id="999",
        clickup_audit_list_id="audit-list",
        google_ads_client_id="ads-client",
        google_ads_client_secret="ads-secret",
        google_ads_developer_token="dev-token",
        google_ads_refresh_token="ads-refresh",
        google_ads_login_customer_id="1112223333",
        google_client_id="oauth-client",
        google_client_secret="oauth-secret",
    )


Route = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeServer:
    """Answers requests from a (method, path) route table and records them.

    Unrouted requests get a 404 so a test notices calls it did not expect.
    """

    def __init__(self, routes: Optional[dict[tuple[str, str], Route]] = None):
        self.routes = dict(routes or {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"err": "Route not found"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


class FakeQueryClient:
    """Stands in for GoogleAdsQueryClient.

    ``rows`` may be a list (returned for every query) or a callable taking
    the GAQL text.  ``error`` is raised from every call when set.
    """

    def __init__(self, rows=None, error: Optional[Exception] = None, customers=None):
        self.rows = rows if rows is not None else []
        self.error = error
        self.customers = customers or []
        self.calls: list[tuple[str, str]] = []

    def search(self, customer_id: str, query: str) -> list[dict]:
        self.calls.append((customer_id, query))
        if self.error:
            raise self.error
        if callable(self.rows):
            return self.rows(query)
        return self.rows

    def list_accessible_customers(self) -> list[str]:
        if self.error:
            raise self.error
        return list(self.customers)


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def make_query_client() -> Callable[..., FakeQueryClient]:
    return FakeQueryClient
