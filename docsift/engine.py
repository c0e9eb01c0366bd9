# File: docsift/engine.py
"""docsift.engine: асинхронный фасад для CLI и внешних вызовов.

Открывает HTTP-клиент на время одной операции и собирает компоненты ядра
из конфигурации.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from docsift.config import DocsiftConfig
from docsift.crawler.fetcher import AiohttpClient, FetchError
from docsift.logger import logger
from docsift.parser.html_parser import ContentExtractor, ExtractedContent
from docsift.sitemap.models import SitemapEntry
from docsift.sitemap.processor import SitemapProcessor

__all__ = ["discover_site", "extract_page"]


async def discover_site(
    cfg: DocsiftConfig,
    site_url: str,
    include: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> List[SitemapEntry]:
    """Ранжированный список URL из sitemap сайта *site_url*."""
    logger.info("Starting sitemap discovery for %s", site_url)
    async with AiohttpClient(cfg.http) as client:
        processor = SitemapProcessor(client, cfg)
        return await processor.discover_ranked(site_url, include, exclude, limit)


async def extract_page(cfg: DocsiftConfig, url: str) -> Optional[ExtractedContent]:
    """Загружает страницу и извлекает основной текст; None, если извлекать нечего.

    Ошибка сети или статус не 2xx дают FetchError.
    """
    http = cfg.http
    async with AiohttpClient(http) as client:
        resp = await client.get(
            url,
            timeout=http.page_timeout,
            headers={"Accept": "text/html,application/xhtml+xml", "User-Agent": http.browser_user_agent},
        )
    if not resp.ok:
        raise FetchError(url, f"HTTP {resp.status_code}", resp.status_code)
    # без charset в заголовках кодировку определяет BeautifulSoup по <meta>
    html = resp.text if resp.charset else resp.body
    return ContentExtractor(cfg.extractor).extract(html, resp.url or url)
