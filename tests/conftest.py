"""Shared fixtures: a routed mock transport and an in-memory resolver."""

from __future__ import annotations

from typing import Callable, Optional, Union

import httpx
import pytest

from exposcope.core.config import Settings

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], Exception]


def html_response(body: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, text=body, headers={"content-type": "text/html; charset=utf-8"})


def js_response(body: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, text=body, headers={"content-type": "application/javascript"})


class RoutedTransport(httpx.MockTransport):
    """
    Mock transport answering from a URL -> response table.

    Unlisted URLs get ``default`` (404 unless set). Every request is
    recorded as ``(method, url)``.
    """

    def __init__(self, routes: dict[str, Route], default: Optional[Route] = None):
        self.routes = {str(httpx.URL(url)): route for url, route in routes.items()}
        self.default = default if default is not None else httpx.Response(404, text="missing")
        self.requests: list[tuple[str, str]] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append((request.method, url))
        route = self.routes.get(url, self.default)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        # Responses are single-use once streamed, so hand out copies
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)


class FakeResolver:
    """DNS resolver answering from fixed tables."""

    def __init__(self, cnames: Optional[dict[str, list[str]]] = None):
        self.cnames = cnames or {}
        self.queries: list[str] = []

    async def resolve_cname(self, hostname: str) -> list[str]:
        self.queries.append(hostname)
        return list(self.cnames.get(hostname, []))

    async def resolve_txt(self, hostname: str) -> list[str]:
        return []

    async def resolve_mx(self, hostname: str) -> list:
        return []


@pytest.fixture
def settings() -> Settings:
    """Default settings, unaffected by the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()
