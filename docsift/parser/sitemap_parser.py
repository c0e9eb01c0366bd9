# File: docsift/parser/sitemap_parser.py
"""docsift.parser.sitemap_parser: разбор XML/JSON sitemap и sitemap index.

Разбор намеренно терпимый: битая запись отбрасывается, а не валит весь
документ. Строгими остаются только :meth:`SitemapParser.parse_sitemap_index`
и :meth:`SitemapParser.parse_xml`, которые бросают ``ValueError``.
"""

from __future__ import annotations

import codecs
import gzip
import json
import math
from datetime import datetime
from typing import Any, List, Optional, Union

from lxml import etree

from docsift.logger import logger
from docsift.sitemap.models import RawSitemap, RawSitemapUrl, SitemapEntry, SitemapIndex

__all__ = (
    "DEFAULT_PRIORITY",
    "SitemapParser",
    "looks_like_json",
    "normalize_priority",
    "parse_lastmod",
    "unpack_sitemap_body",
)

DEFAULT_PRIORITY = 0.5

_GZIP_MAGIC = b"\x1f\x8b"


def unpack_sitemap_body(body: bytes) -> bytes:
    """Return the sitemap bytes, gunzipping ``*.xml.gz`` payloads."""
    if body[:2] == _GZIP_MAGIC:
        try:
            body = gzip.decompress(body)
        except (OSError, EOFError) as exc:
            raise ValueError(f"corrupt gzip sitemap: {exc}") from exc
    return body


def looks_like_json(content: Union[str, bytes]) -> bool:
    if isinstance(content, bytes):
        return content.lstrip(codecs.BOM_UTF8).lstrip()[:1] in (b"{", b"[")
    return content.lstrip("\ufeff").lstrip().startswith(("{", "["))


def parse_lastmod(value: Any) -> Optional[datetime]:
    """Parse a W3C datetime (``YYYY``, ``YYYY-MM``, full ISO-8601); ``None`` if invalid."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in ("%Y-%m", "%Y"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Ignoring unparseable lastmod %r", text)
    return None


def normalize_priority(raw: Any) -> Optional[float]:
    """Coerce *raw* to a float in [0, 1]; invalid values become :data:`DEFAULT_PRIORITY`."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid priority value: %r, resetting to default", raw)
        return DEFAULT_PRIORITY
    if math.isnan(value) or value < 0 or value > 1:
        logger.warning("Invalid priority value: %r, resetting to default", raw)
        return DEFAULT_PRIORITY
    return value


def _xml_root(content: Union[str, bytes]) -> etree._Element:
    # bytes keep the <?xml encoding=...?> declaration in charge; decoded text
    # is re-encoded as UTF-8 and the declaration is overridden
    if isinstance(content, bytes):
        data = content.lstrip(codecs.BOM_UTF8).strip()
        encoding = None
    else:
        data = content.lstrip("\ufeff").strip().encode("utf-8")
        encoding = "utf-8"
    if not data:
        raise ValueError("empty XML document")
    parser = etree.XMLParser(
        encoding=encoding, ns_clean=True, recover=True, resolve_entities=False, no_network=True
    )
    try:
        root = etree.fromstring(data, parser=parser)
    except (etree.XMLSyntaxError, LookupError) as exc:
        raise ValueError(f"malformed XML: {exc}") from exc
    if root is None:
        raise ValueError("no root element found in XML")
    return root


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _child_text(element: etree._Element, tag: str) -> Optional[str]:
    text = element.findtext(f"{{*}}{tag}")
    if text is None:
        return None
    return text.strip() or None


class SitemapParser:
    """Converts raw sitemap payloads into entries or index references."""

    # ------------------------------------------------------------------ XML

    def parse_xml(self, content: Union[str, bytes]) -> Union[SitemapIndex, List[RawSitemapUrl]]:
        """Strictly parse *content*: a :class:`SitemapIndex` or the raw ``<url>`` list.

        Raises ``ValueError`` for malformed XML or an unknown root element.
        """
        root = _xml_root(content)
        name = _local_name(root)
        if name == "sitemapindex":
            return self._index_from_root(root)
        if name == "urlset":
            return self._extract_urls(root)
        raise ValueError(f"Unrecognized XML root element: {name}")

    def is_sitemap_index(self, content: Union[str, bytes]) -> bool:
        try:
            return _local_name(_xml_root(content)) == "sitemapindex"
        except ValueError as exc:
            logger.warning("Error checking if content is a sitemap index: %s", exc)
            return False

    def parse_sitemap_index(self, content: Union[str, bytes]) -> SitemapIndex:
        """Parse a ``<sitemapindex>`` document; raises ``ValueError`` for anything else."""
        root = _xml_root(content)
        if _local_name(root) != "sitemapindex":
            raise ValueError("Not a valid sitemap index")
        return self._index_from_root(root)

    def parse_sitemap(self, content: Union[str, bytes]) -> List[SitemapEntry]:
        """Parse a leaf sitemap, sniffing JSON vs XML. Never raises."""
        if looks_like_json(content):
            return self.process_json_sitemap(content)
        return self.process_xml_sitemap(content)

    def process_xml_sitemap(self, content: Union[str, bytes]) -> List[SitemapEntry]:
        try:
            root = _xml_root(content)
        except ValueError as exc:
            logger.error("Error processing XML sitemap: %s", exc)
            return []
        if _local_name(root) != "urlset":
            logger.error("Error processing XML sitemap: root is <%s>, not <urlset>", _local_name(root))
            return []
        entries = [self.entry_from_raw(raw) for raw in self._extract_urls(root)]
        logger.info("Processed XML sitemap with %d URLs", len(entries))
        return entries

    @staticmethod
    def entry_from_raw(raw: RawSitemapUrl) -> SitemapEntry:
        """Promote a raw ``<url>`` record to a validated :class:`SitemapEntry`."""
        return SitemapEntry(
            url=raw.loc,
            lastmod=parse_lastmod(raw.lastmod),
            changefreq=raw.changefreq,
            priority=normalize_priority(raw.priority),
            from_sitemap=True,
        )

    def _index_from_root(self, root: etree._Element) -> SitemapIndex:
        raw = self._extract_sitemaps(root)
        lastmod = parse_lastmod(raw[0].lastmod) if raw else None
        return SitemapIndex(sitemaps=tuple(s.loc for s in raw), lastmod=lastmod)

    @staticmethod
    def _extract_sitemaps(root: etree._Element) -> List[RawSitemap]:
        sitemaps: List[RawSitemap] = []
        for element in root.iterfind("{*}sitemap"):
            loc = _child_text(element, "loc")
            if loc:
                sitemaps.append(RawSitemap(loc=loc, lastmod=_child_text(element, "lastmod")))
        return sitemaps

    @staticmethod
    def _extract_urls(root: etree._Element) -> List[RawSitemapUrl]:
        urls: List[RawSitemapUrl] = []
        for element in root.iterfind("{*}url"):
            loc = _child_text(element, "loc")
            if not loc:
                continue
            urls.append(
                RawSitemapUrl(
                    loc=loc,
                    lastmod=_child_text(element, "lastmod"),
                    changefreq=_child_text(element, "changefreq"),
                    priority=_child_text(element, "priority"),
                )
            )
        return urls

    # ----------------------------------------------------------------- JSON

    def process_json_sitemap(self, content: Union[str, bytes]) -> List[SitemapEntry]:
        """Parse the JSON sitemap shapes in order:

        1. ``["https://…", …]``
        2. ``[{"url"|"loc": …, "lastmod": …}, …]``
        3. ``{"urls": [...]}`` (shape 1 or 2 inside)
        4. ``{"urlset": {"url": [{"loc": …}, …]}}``

        Bytes are decoded by :func:`json.loads` (UTF-8/16/32 with or without BOM).
        """
        if isinstance(content, str):
            content = content.lstrip("\ufeff")
        try:
            data = json.loads(content)
        except ValueError as exc:
            logger.error("Error processing JSON sitemap: %s", exc)
            return []
        entries = self._entries_from_json(data)
        logger.info("Processed JSON sitemap with %d URLs", len(entries))
        return entries

    def _entries_from_json(self, data: Any) -> List[SitemapEntry]:
        if isinstance(data, list):
            if not data:
                return []
            if isinstance(data[0], str):
                return [SitemapEntry(url=u.strip()) for u in data if isinstance(u, str) and u.strip()]
            if isinstance(data[0], dict):
                return self._entries_from_objects(data, ("url", "loc"))
            return []
        if isinstance(data, dict):
            urls = data.get("urls")
            if isinstance(urls, list):
                return self._entries_from_json(urls)
            urlset = data.get("urlset")
            if isinstance(urlset, dict):
                items = urlset.get("url")
                if isinstance(items, dict):
                    items = [items]
                if isinstance(items, list):
                    return self._entries_from_objects(items, ("loc",))
        return []

    @staticmethod
    def _entries_from_objects(items: List[Any], keys: tuple[str, ...]) -> List[SitemapEntry]:
        entries: List[SitemapEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            url = next((item[k] for k in keys if isinstance(item.get(k), str) and item[k].strip()), None)
            if url is None:
                continue
            changefreq = item.get("changefreq")
            entries.append(
                SitemapEntry(
                    url=url.strip(),
                    lastmod=parse_lastmod(item.get("lastmod")),
                    changefreq=str(changefreq) if changefreq else None,
                    priority=normalize_priority(item.get("priority")),
                )
            )
        return entries
