# docsift/crawler/fetcher.py
"""
Fetcher module: the HTTP abstraction used by discovery and sitemap processing.

:class:`HttpClient` is the protocol the core depends on; :class:`AiohttpClient`
is the production implementation with robots.txt compliance and per-host
crawl-delay throttling.
"""
from __future__ import annotations

import asyncio
import time
from typing import Dict, Mapping, Optional, Protocol
from urllib.parse import urlparse, urlunparse

from aiohttp import ClientError, ClientSession, ClientTimeout

from docsift.config import HttpSettings
from docsift.crawler.models import HttpResponse
from docsift.crawler.robots import RobotsTxtRules
from docsift.logger import logger

__all__ = ("FetchError", "RobotsDisallowedError", "HttpClient", "AiohttpClient")


class FetchError(Exception):
    """A request could not produce a usable response."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class RobotsDisallowedError(FetchError):
    """robots.txt forbids fetching the URL."""


class HttpClient(Protocol):
    """Anything able to perform a GET and return an :class:`HttpResponse`.

    Transport failures raise :class:`FetchError`; non-2xx statuses are
    returned as regular responses.
    """

    async def get(
        self,
        url: str,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse: ...


class AiohttpClient:
    """aiohttp-backed :class:`HttpClient`, used as an async context manager."""

    def __init__(self, settings: Optional[HttpSettings] = None) -> None:
        self.settings = settings or HttpSettings()
        self.session: Optional[ClientSession] = None
        self._robots: Dict[str, Optional[RobotsTxtRules]] = {}
        self._robots_lock = asyncio.Lock()
        self._host_locks: Dict[str, asyncio.Lock] = {}
        self._last_request_ts: Dict[str, float] = {}

    async def __aenter__(self) -> AiohttpClient:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.settings.default_timeout),
            headers={"User-Agent": self.settings.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def get(
        self,
        url: str,
        *,
        timeout: Optional[float] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        if self.session is None:
            raise RuntimeError("Session not initialized")

        parsed = urlparse(url)
        if self.settings.respect_robots_txt and parsed.path != "/robots.txt":
            rules = await self._rules_for(url)
            user_agent = (headers or {}).get("User-Agent", self.settings.user_agent)
            if rules is not None:
                if not rules.can_fetch(user_agent, parsed.path or "/"):
                    raise RobotsDisallowedError(url, "disallowed by robots.txt")
                await self._wait_for_crawl_delay(parsed.netloc, rules.crawl_delay(user_agent))

        return await self._request(url, timeout=timeout, headers=headers)

    async def _request(
        self,
        url: str,
        *,
        timeout: Optional[float],
        headers: Optional[Mapping[str, str]],
    ) -> HttpResponse:
        assert self.session is not None
        client_timeout = ClientTimeout(total=timeout or self.settings.default_timeout)
        try:
            async with self.session.get(url, timeout=client_timeout, headers=dict(headers or {})) as resp:
                body = await resp.read()
                return HttpResponse(
                    url=str(resp.url),
                    status_code=resp.status,
                    headers={k.lower(): v for k, v in resp.headers.items()},
                    body=body,
                    encoding=resp.charset,
                )
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timed out") from exc
        except ClientError as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc

    async def _rules_for(self, url: str) -> Optional[RobotsTxtRules]:
        parsed = urlparse(url)
        host = parsed.netloc.lower()
        async with self._robots_lock:
            if host in self._robots:
                return self._robots[host]
            robots_url = urlunparse((parsed.scheme, parsed.netloc, "/robots.txt", "", "", ""))
            rules: Optional[RobotsTxtRules] = None
            try:
                resp = await self._request(robots_url, timeout=self.settings.robots_timeout, headers=None)
                if resp.ok:
                    rules = RobotsTxtRules(resp.text)
                else:
                    logger.debug("robots.txt %s -> HTTP %s", robots_url, resp.status_code)
            except FetchError as exc:
                # default allow all
                logger.debug("Error loading robots.txt %s: %s", robots_url, exc)
            self._robots[host] = rules
            return rules

    async def _wait_for_crawl_delay(self, host: str, crawl_delay: Optional[float]) -> None:
        if not crawl_delay:
            return
        interval = min(crawl_delay, self.settings.max_crawl_delay)
        lock = self._host_locks.setdefault(host, asyncio.Lock())
        async with lock:
            now = time.monotonic()
            wait = interval - (now - self._last_request_ts.get(host, float("-inf")))
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request_ts[host] = time.monotonic()
