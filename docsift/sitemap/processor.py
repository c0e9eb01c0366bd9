# docsift/sitemap/processor.py
"""
SitemapProcessor: discovery → fetch → parse → (expand indexes) → score → dedup.

This is the public entry point of the sitemap core. Neither
:meth:`SitemapProcessor.process_sitemap` nor
:meth:`SitemapProcessor.discover_and_process_sitemaps` raises under normal
operation; failures degrade to empty or partial results and are logged.
"""
from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Iterable, List, Optional, Sequence, Set, Tuple, Union

from docsift.config import DocsiftConfig
from docsift.crawler.fetcher import FetchError, HttpClient, RobotsDisallowedError
from docsift.crawler.models import decode_body
from docsift.logger import logger
from docsift.parser.sitemap_parser import SitemapParser, looks_like_json, unpack_sitemap_body
from docsift.sitemap.depth import assign_depths
from docsift.sitemap.discovery import SITEMAP_ACCEPT, SitemapDiscovery
from docsift.sitemap.models import SitemapEntry, SitemapIndex
from docsift.sitemap.scorer import SitemapScorer
from docsift.utils import site_root

__all__ = ["SitemapProcessor", "merge_entries"]

_Parsed = Union[SitemapIndex, List[SitemapEntry]]


def merge_entries(entries: Iterable[SitemapEntry]) -> List[SitemapEntry]:
    """Deduplicate by URL.

    A later duplicate replaces the kept entry only when both carry a score and
    the later one is strictly lower; otherwise the first-seen entry stays.
    """
    unique: dict[str, SitemapEntry] = {}
    for entry in entries:
        existing = unique.get(entry.url)
        if existing is None:
            unique[entry.url] = entry
        elif entry.score is not None and existing.score is not None and entry.score < existing.score:
            unique[entry.url] = entry
    return list(unique.values())


class SitemapProcessor:
    """Coordinates discovery, fetching, parsing and scoring of sitemaps."""

    def __init__(
        self,
        client: HttpClient,
        config: Optional[DocsiftConfig] = None,
        *,
        discovery: Optional[SitemapDiscovery] = None,
        parser: Optional[SitemapParser] = None,
        scorer: Optional[SitemapScorer] = None,
    ) -> None:
        self.client = client
        self.config = config or DocsiftConfig()
        self.settings = self.config.sitemap
        self.discovery = discovery or SitemapDiscovery(client, self.config.http, self.settings)
        self.parser = parser or SitemapParser()
        self.scorer = scorer or SitemapScorer(self.config.scoring)

    # ------------------------------------------------------------------ #
    # Single sitemap                                                      #
    # ------------------------------------------------------------------ #

    async def process_sitemap(self, url: str) -> List[SitemapEntry]:
        """Entries of the sitemap at *url*, with nested indexes flattened."""
        logger.info("Processing sitemap: %s", url)
        try:
            return await self._expand(url)
        except Exception as exc:
            logger.error("Error processing sitemap %s: %s", url, exc)
            return []

    async def _expand(self, url: str) -> List[SitemapEntry]:
        """Walk *url* and its child sitemaps depth-first, in document order.

        The root's terminal failure propagates; a child's failure only drops
        that child. Expansion stops at ``max_index_depth`` nesting levels and
        after ``max_sitemaps`` fetches, and never fetches a URL twice.
        """
        entries: List[SitemapEntry] = []
        pending: Deque[Tuple[str, int]] = deque([(url, 0)])
        seen: Set[str] = {url}
        fetched = 0

        while pending:
            current, depth = pending.popleft()
            if fetched >= self.settings.max_sitemaps:
                logger.warning(
                    "Sitemap limit %d reached, skipping %d remaining sitemaps under %s",
                    self.settings.max_sitemaps,
                    len(pending) + 1,
                    url,
                )
                break
            fetched += 1

            try:
                parsed = await self._fetch_with_retry(current)
            except (FetchError, ValueError) as exc:
                if depth == 0:
                    raise
                logger.warning("Error processing child sitemap %s: %s", current, exc)
                continue

            if isinstance(parsed, SitemapIndex):
                logger.info("Detected sitemap index with %d sitemaps: %s", len(parsed.sitemaps), current)
                if depth >= self.settings.max_index_depth:
                    logger.warning("Sitemap index %s exceeds nesting depth %d, skipped", current, depth)
                    continue
                children = [child for child in parsed.sitemaps if child not in seen]
                seen.update(children)
                pending.extendleft((child, depth + 1) for child in reversed(children))
            else:
                entries.extend(parsed)

        logger.info("Extracted %d URLs from %s", len(entries), url)
        return entries

    async def _fetch_with_retry(self, url: str) -> _Parsed:
        """Fetch and parse *url*, retrying with exponential back-off.

        robots.txt refusals are final and never retried.
        """
        attempts = self.settings.max_retries + 1
        for attempt in range(attempts):
            if attempt > 0:
                delay = self.settings.backoff_base ** attempt
                logger.info("Retry %d/%d for sitemap %s in %.1fs", attempt, self.settings.max_retries, url, delay)
                await asyncio.sleep(delay)
            try:
                return await self._fetch_and_parse(url)
            except RobotsDisallowedError:
                raise
            except (FetchError, ValueError) as exc:
                logger.warning("Attempt %d/%d failed for sitemap %s: %s", attempt + 1, attempts, url, exc)
                if attempt == attempts - 1:
                    raise
        raise FetchError(url, "no fetch attempts configured")

    async def _fetch_and_parse(self, url: str) -> _Parsed:
        http = self.config.http
        resp = await self.client.get(
            url,
            timeout=http.sitemap_timeout,
            headers={
                "Accept": SITEMAP_ACCEPT,
                "Accept-Encoding": "gzip, deflate",
                "User-Agent": http.browser_user_agent,
            },
        )
        if not resp.ok:
            raise FetchError(url, f"HTTP {resp.status_code}", resp.status_code)

        base_domain = site_root(url)
        payload = unpack_sitemap_body(resp.body)
        # an explicit HTTP charset wins; otherwise the parsers detect the encoding
        content = decode_body(payload, resp.charset) if resp.charset else payload
        content_type = (resp.header("content-type") or "").lower()

        if "json" in content_type or url.lower().endswith(".json") or looks_like_json(content):
            entries = self.parser.process_json_sitemap(content)
            return [self.scorer.score_entry(entry, base_domain) for entry in entries]

        parsed = self.parser.parse_xml(content)
        if isinstance(parsed, SitemapIndex):
            return parsed
        return [
            self.scorer.score_entry(self.parser.entry_from_raw(raw), base_domain)
            for raw in parsed
            if raw.loc
        ]

    # ------------------------------------------------------------------ #
    # Whole site                                                          #
    # ------------------------------------------------------------------ #

    async def discover_and_process_sitemaps(self, site_url: str) -> List[SitemapEntry]:
        """Deduplicated, scored entries from every sitemap discovered for *site_url*."""
        try:
            sitemap_urls = await self.discovery.discover_sitemaps(site_url)
            if not sitemap_urls:
                logger.warning("No sitemaps found for %s", site_url)
                return []

            collected: List[SitemapEntry] = []
            size = self.settings.batch_size
            for start in range(0, len(sitemap_urls), size):
                batch = sitemap_urls[start : start + size]
                results = await asyncio.gather(*(self.process_sitemap(u) for u in batch))
                for entries in results:
                    collected.extend(entries)

            result = merge_entries(collected)
            logger.info("Discovered %d unique URLs from sitemaps for %s", len(result), site_url)
            return result
        except Exception as exc:
            logger.error("Error discovering and processing sitemaps for %s: %s", site_url, exc)
            return []

    async def discover_ranked(
        self,
        site_url: str,
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
    ) -> List[SitemapEntry]:
        """Filtered, sorted, depth-annotated and truncated entries for *site_url*."""
        entries = await self.discover_and_process_sitemaps(site_url)
        entries = self.filter_entries(entries, include_patterns, exclude_patterns)
        entries = assign_depths(self.sort_entries_by_priority(entries, site_root(site_url)))
        max_entries = self.settings.max_entries if limit is None else limit
        if max_entries > 0:
            entries = entries[:max_entries]
        logger.info("Ranked %d sitemap entries for %s", len(entries), site_url)
        return entries

    # ------------------------------------------------------------------ #
    # Scorer delegates                                                    #
    # ------------------------------------------------------------------ #

    def filter_entries(
        self,
        entries: Iterable[SitemapEntry],
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> List[SitemapEntry]:
        return self.scorer.filter_entries(entries, include_patterns, exclude_patterns)

    def sort_entries_by_priority(
        self, entries: Iterable[SitemapEntry], base_domain: Optional[str] = None
    ) -> List[SitemapEntry]:
        items = list(entries)
        if base_domain is None:
            base_domain = site_root(items[0].url) if items else ""
        return self.scorer.sort_entries_by_priority(items, base_domain)
