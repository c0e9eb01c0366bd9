# File: tests/test_fetcher.py
# Tests for the aiohttp client against local aiohttp.web servers
from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from conftest import serve_app, sitemapindex, urlset

from docsift.config import DocsiftConfig, HttpSettings, SitemapSettings
from docsift.crawler.fetcher import AiohttpClient, FetchError, RobotsDisallowedError
from docsift.crawler.models import HttpResponse
from docsift.engine import discover_site, extract_page
from docsift.sitemap.processor import SitemapProcessor

AGENT = "TestAgent/1.0"
RU_TEXT = "Документация по API сервиса. Здесь описаны методы, параметры запросов и коды ошибок."


def settings(**overrides) -> HttpSettings:
    return HttpSettings(user_agent=AGENT, **overrides)


# --------------------------------------------------------------------------- #
#                            Test-server fixtures                             #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def docs_server(unused_tcp_port: int) -> AsyncIterator[tuple[str, dict]]:
    """Small documentation site with a sitemap index, a blocked path and a slow page."""
    app = web.Application()
    hits = {"robots": 0}
    base = f"http://localhost:{unused_tcp_port}"

    async def handle_robots(_):
        hits["robots"] += 1
        return web.Response(
            text=f"User-agent: {AGENT}\nDisallow: /private\n\nSitemap: {base}/sitemap_index.xml\n",
            content_type="text/plain",
        )

    async def handle_index(_):
        return web.Response(
            text=sitemapindex(f"{base}/sitemap-docs.xml", f"{base}/sitemap-blog.xml"),
            content_type="application/xml",
        )

    async def handle_docs_sitemap(_):
        return web.Response(
            text=urlset(f"{base}/", f"{base}/docs/intro", f"{base}/docs/api/reference"),
            content_type="application/xml",
        )

    async def handle_blog_sitemap(_):
        return web.Response(
            text=urlset(f"{base}/blog/2024/01/news", f"{base}/docs/intro"),
            content_type="application/xml",
        )

    async def handle_page(_):
        body = "<p>" + "Read the installation guide before configuring the client. " * 3 + "</p>"
        return web.Response(
            text=f"<html><head><title>Intro</title></head><body><nav>Menu</nav><main><h1>Intro</h1>{body}</main></body></html>",
            content_type="text/html",
        )

    async def handle_private(_):
        return web.Response(text="secret", content_type="text/plain")

    async def handle_slow(_):
        await asyncio.sleep(1)
        return web.Response(text="late", content_type="text/plain")

    async def handle_agent(request):
        return web.Response(text=request.headers.get("User-Agent", ""), headers={"X-Docs": "1"})

    app.router.add_get("/robots.txt", handle_robots)
    app.router.add_get("/sitemap_index.xml", handle_index)
    app.router.add_get("/sitemap-docs.xml", handle_docs_sitemap)
    app.router.add_get("/sitemap-blog.xml", handle_blog_sitemap)
    app.router.add_get("/docs/intro", handle_page)
    app.router.add_get("/private", handle_private)
    app.router.add_get("/slow", handle_slow)
    app.router.add_get("/agent", handle_agent)

    async for url in serve_app(app, unused_tcp_port):
        yield url, hits


@pytest_asyncio.fixture
async def throttled_server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_robots(_):
        return web.Response(text="User-agent: *\nCrawl-delay: 0.3\n", content_type="text/plain")

    async def handle_page(_):
        return web.Response(text="ok")

    app.router.add_get("/robots.txt", handle_robots)
    app.router.add_get("/page", handle_page)

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest_asyncio.fixture
async def legacy_server(unused_tcp_port: int) -> AsyncIterator[str]:
    """windows-1251 pages: one with an HTTP charset, one with only <meta charset>."""
    app = web.Application()

    async def handle_header_charset(_):
        html = f"<html><head><title>API</title></head><body><main><p>{RU_TEXT}</p></main></body></html>"
        return web.Response(body=html.encode("cp1251"), content_type="text/html", charset="windows-1251")

    async def handle_meta_charset(_):
        html = (
            '<html><head><meta charset="windows-1251"><title>API</title></head>'
            f"<body><main><p>{RU_TEXT}</p></main></body></html>"
        )
        return web.Response(body=html.encode("cp1251"), content_type="text/html")

    async def handle_robots(_):
        return web.Response(text="User-agent: *\n", content_type="text/plain")

    app.router.add_get("/robots.txt", handle_robots)
    app.router.add_get("/header", handle_header_charset)
    app.router.add_get("/meta", handle_meta_charset)

    async for url in serve_app(app, unused_tcp_port):
        yield url


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_get_returns_response(docs_server):
    base, _ = docs_server
    async with AiohttpClient(settings()) as client:
        resp = await client.get(f"{base}/agent")

    assert resp.ok
    assert resp.text == AGENT
    assert resp.header("X-Docs") == "1"
    assert "x-docs" in resp.headers


@pytest.mark.asyncio()
async def test_error_status_is_returned_not_raised(docs_server):
    base, _ = docs_server
    async with AiohttpClient(settings()) as client:
        resp = await client.get(f"{base}/missing")
    assert resp.status_code == 404
    assert not resp.ok


@pytest.mark.asyncio()
async def test_robots_disallow_and_cache(docs_server):
    base, hits = docs_server
    async with AiohttpClient(settings()) as client:
        with pytest.raises(RobotsDisallowedError):
            await client.get(f"{base}/private")
        await client.get(f"{base}/agent")
        await client.get(f"{base}/robots.txt")
    assert hits["robots"] == 2


@pytest.mark.asyncio()
async def test_robots_can_be_ignored(docs_server):
    base, hits = docs_server
    async with AiohttpClient(settings(respect_robots_txt=False)) as client:
        resp = await client.get(f"{base}/private")
    assert resp.text == "secret"
    assert hits["robots"] == 0


@pytest.mark.asyncio()
async def test_timeout_raises_fetch_error(docs_server):
    base, _ = docs_server
    async with AiohttpClient(settings()) as client:
        with pytest.raises(FetchError):
            await client.get(f"{base}/slow", timeout=0.2)


@pytest.mark.asyncio()
async def test_connection_refused_raises_fetch_error(unused_tcp_port: int):
    async with AiohttpClient(settings(respect_robots_txt=False)) as client:
        with pytest.raises(FetchError):
            await client.get(f"http://localhost:{unused_tcp_port}/")


@pytest.mark.asyncio()
async def test_client_requires_context():
    with pytest.raises(RuntimeError):
        await AiohttpClient(settings()).get("http://localhost/")


@pytest.mark.asyncio()
async def test_crawl_delay_is_respected(throttled_server):
    async with AiohttpClient(settings()) as client:
        start = time.perf_counter()
        await client.get(f"{throttled_server}/page")
        await client.get(f"{throttled_server}/page")
        elapsed = time.perf_counter() - start
    assert elapsed >= 0.3


@pytest.mark.asyncio()
async def test_crawl_delay_is_capped(throttled_server):
    async with AiohttpClient(settings(max_crawl_delay=0.0)) as client:
        start = time.perf_counter()
        for _ in range(3):
            await client.get(f"{throttled_server}/page")
        elapsed = time.perf_counter() - start
    assert elapsed < 0.3


@pytest.mark.asyncio()
async def test_end_to_end_sitemap_discovery(docs_server):
    base, _ = docs_server
    cfg = DocsiftConfig(http=settings(), sitemap=SitemapSettings(backoff_base=0))
    async with AiohttpClient(cfg.http) as client:
        entries = await SitemapProcessor(client, cfg).discover_and_process_sitemaps(base)

    urls = [e.url for e in entries]
    assert urls == [
        f"{base}/",
        f"{base}/docs/intro",
        f"{base}/docs/api/reference",
        f"{base}/blog/2024/01/news",
    ]


@pytest.mark.asyncio()
async def test_engine_facade(docs_server):
    base, _ = docs_server
    cfg = DocsiftConfig(http=settings(), sitemap=SitemapSettings(backoff_base=0))

    ranked = await discover_site(cfg, base, include=[r"/docs/"], limit=1)
    assert [e.url for e in ranked] == [f"{base}/docs/api/reference"]
    assert ranked[0].calculated_depth == 1

    content = await extract_page(cfg, f"{base}/docs/intro")
    assert content.title == "Intro"
    assert "installation guide" in content.content
    assert "Menu" not in content.content

    with pytest.raises(FetchError):
        await extract_page(cfg, f"{base}/missing")


@pytest.mark.asyncio()
async def test_response_keeps_http_charset(legacy_server):
    async with AiohttpClient(settings()) as client:
        resp = await client.get(f"{legacy_server}/header")

    assert resp.charset == "windows-1251"
    assert RU_TEXT in resp.text


@pytest.mark.asyncio()
@pytest.mark.parametrize("path", ["/header", "/meta"])
async def test_extract_page_decodes_legacy_charset(legacy_server, path):
    cfg = DocsiftConfig(http=settings())
    content = await extract_page(cfg, f"{legacy_server}{path}")
    assert content is not None
    assert "Документация по API сервиса." in content.content


@pytest.mark.parametrize(
    "headers,encoding",
    [
        ({"content-type": "text/html; charset=windows-1251"}, None),
        ({"content-type": 'text/html; charset="CP1251"'}, None),
        ({}, "windows-1251"),
    ],
)
def test_response_text_uses_charset(headers, encoding):
    body = RU_TEXT.encode("cp1251")
    resp = HttpResponse(url="https://x.test/", status_code=200, headers=headers, body=body, encoding=encoding)
    assert resp.text == RU_TEXT


def test_response_text_falls_back_to_utf8():
    body = RU_TEXT.encode("utf-8")
    assert HttpResponse(url="https://x.test/", status_code=200, body=body).text == RU_TEXT
    unknown = HttpResponse(
        url="https://x.test/", status_code=200, headers={"content-type": "text/html; charset=x-unknown"}, body=body
    )
    assert unknown.charset == "x-unknown"
    assert unknown.text == RU_TEXT
