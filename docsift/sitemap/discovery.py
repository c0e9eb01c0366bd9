# docsift/sitemap/discovery.py
"""
Sitemap discovery: robots.txt, then conventional paths, then HTML hints.

Every tier swallows and logs its own network failures; an empty tier falls
through to the next one and the first non-empty tier wins.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from docsift.config import HttpSettings, SitemapSettings
from docsift.crawler.fetcher import FetchError, HttpClient
from docsift.crawler.robots import RobotsTxtRules
from docsift.logger import logger
from docsift.utils import UnsafeUrlError, remove_duplicates, resolve_reference, site_root

SITEMAP_ACCEPT = "application/xml, text/xml, application/json, */*"


class SitemapDiscovery:
    """Finds candidate sitemap URLs for a site."""

    def __init__(
        self,
        client: HttpClient,
        http: Optional[HttpSettings] = None,
        settings: Optional[SitemapSettings] = None,
    ) -> None:
        self.client = client
        self.http = http or HttpSettings()
        self.settings = settings or SitemapSettings()

    async def discover_sitemaps(self, base_url: str) -> List[str]:
        """Return sitemap URLs for *base_url*, ``[]`` when nothing is found."""
        try:
            logger.info("Discovering sitemaps for %s", base_url)
            found = await self.discover_from_robots_txt(base_url)
            if not found:
                logger.info("No sitemaps found in robots.txt, checking common locations")
                found = await self.discover_from_common_locations(base_url)
            if not found:
                found = await self.discover_from_html(base_url)
            return remove_duplicates(found)
        except Exception as exc:
            logger.error("Error discovering sitemaps for %s: %s", base_url, exc)
            return []

    async def discover_from_robots_txt(self, base_url: str) -> List[str]:
        robots_url = f"{site_root(base_url)}/robots.txt"
        try:
            resp = await self.client.get(robots_url, timeout=self.http.robots_timeout)
        except FetchError as exc:
            logger.warning("Could not fetch robots.txt: %s", exc)
            return []
        if not resp.ok:
            logger.debug("robots.txt %s -> HTTP %s", robots_url, resp.status_code)
            return []
        sitemaps = RobotsTxtRules(resp.text).sitemaps
        for url in sitemaps:
            logger.info("Found sitemap in robots.txt: %s", url)
        return remove_duplicates(sitemaps)

    def candidate_locations(self, base_url: str) -> List[str]:
        """Conventional sitemap URLs under the bare domain and under *base_url*."""
        root = site_root(base_url)
        base = base_url.rstrip("/")
        paths: Sequence[str] = self.settings.common_paths
        return remove_duplicates([f"{root}{p}" for p in paths] + [f"{base}{p}" for p in paths])

    async def discover_from_common_locations(self, base_url: str) -> List[str]:
        locations = self.candidate_locations(base_url)
        results = await asyncio.gather(*(self._location_exists(location) for location in locations))
        return [location for location, found in zip(locations, results) if found]

    async def _location_exists(self, location: str) -> bool:
        try:
            resp = await self.client.get(
                location,
                timeout=self.http.location_timeout,
                headers={"Accept": SITEMAP_ACCEPT},
            )
        except FetchError as exc:
            logger.debug("Sitemap location check %s failed: %s", location, exc)
            return False
        if resp.ok:
            logger.info("Found sitemap at common location: %s", location)
            return True
        return False

    async def discover_from_html(self, base_url: str) -> List[str]:
        try:
            resp = await self.client.get(
                base_url,
                timeout=self.http.page_timeout,
                headers={"Accept": "text/html", "User-Agent": self.http.browser_user_agent},
            )
        except FetchError as exc:
            logger.warning("Could not check HTML for sitemap hints: %s", exc)
            return []
        if not resp.ok:
            logger.debug("Base page %s -> HTTP %s", base_url, resp.status_code)
            return []
        return self.sitemap_hints(resp.text, resp.url or base_url)

    @staticmethod
    def sitemap_hints(html: str, page_url: str) -> List[str]:
        """Sitemap-looking anchors and ``<link rel="sitemap">`` targets in *html*."""
        soup = BeautifulSoup(html, "html.parser")
        hrefs: List[str] = []
        for tag in soup.find_all("a", href=True):
            href = str(tag["href"])
            if "sitemap" in href.lower() or "sitemap" in tag.get_text().lower():
                hrefs.append(href)
        for tag in soup.select('link[rel~="sitemap"][href]'):
            hrefs.append(str(tag["href"]))

        found: List[str] = []
        for href in hrefs:
            try:
                url = resolve_reference(page_url, href)
            except UnsafeUrlError as exc:
                logger.warning("Rejected sitemap hint %r: %s", href, exc)
                continue
            logger.info("Found potential sitemap link in HTML: %s", url)
            found.append(url)
        return remove_duplicates(found)
