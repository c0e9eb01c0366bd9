# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Dict, List, Mapping, Optional, Union

import pytest
from aiohttp import web

from docsift.config import DocsiftConfig, SitemapSettings
from docsift.crawler.models import HttpResponse

Route = Union[HttpResponse, BaseException, List[Union[HttpResponse, BaseException]]]


def xml_response(url: str, text: str, status: int = 200, content_type: str = "application/xml") -> HttpResponse:
    return HttpResponse(url=url, status_code=status, headers={"content-type": content_type}, body=text.encode("utf-8"))


def text_response(url: str, text: str, status: int = 200, content_type: str = "text/plain") -> HttpResponse:
    return HttpResponse(url=url, status_code=status, headers={"content-type": content_type}, body=text.encode("utf-8"))


def urlset(*locs: str) -> str:
    urls = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{urls}</urlset>'


def sitemapindex(*locs: str) -> str:
    items = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{items}</sitemapindex>'


class FakeHttpClient:
    """In-memory HttpClient: url -> response, exception, or a list consumed per call.

    Unknown URLs answer 404. Every call is recorded for call-count assertions.
    """

    def __init__(self, routes: Optional[Dict[str, Route]] = None, delay: float = 0.0) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.delay = delay
        self.calls: List[str] = []
        self.headers: List[Dict[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def count(self, url: str) -> int:
        return self.calls.count(url)

    async def get(
        self,
        url: str,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        self.calls.append(url)
        self.headers.append(dict(headers or {}))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            route = self.routes.get(url)
            if isinstance(route, list):
                route = route.pop(0) if len(route) > 1 else route[0]
            if route is None:
                return HttpResponse(url=url, status_code=404)
            if isinstance(route, BaseException):
                raise route
            return route
        finally:
            self.in_flight -= 1


@pytest.fixture()
def config() -> DocsiftConfig:
    """Default configuration without retry back-off delays."""
    return DocsiftConfig(sitemap=SitemapSettings(backoff_base=0))


@pytest.fixture()
def fake_client() -> FakeHttpClient:
    return FakeHttpClient()


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
