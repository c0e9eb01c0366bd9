# docsift/sitemap/models.py
"""
Data contracts shared by the sitemap modules.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class SitemapEntry:
    """One discovered URL candidate. ``score``: lower means crawl earlier."""

    url: str
    lastmod: Optional[datetime] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None
    from_sitemap: bool = True
    score: Optional[float] = None
    calculated_depth: Optional[int] = None
    content_type: Optional[str] = None

    def with_score(self, score: float) -> SitemapEntry:
        return replace(self, score=score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "lastmod": self.lastmod.isoformat() if self.lastmod else None,
            "changefreq": self.changefreq,
            "priority": self.priority,
            "from_sitemap": self.from_sitemap,
            "score": self.score,
            "calculated_depth": self.calculated_depth,
            "content_type": self.content_type,
        }


@dataclass(frozen=True, slots=True)
class RawSitemapUrl:
    """Raw ``<url>`` data straight from markup, not validated yet."""

    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[str] = None


@dataclass(frozen=True, slots=True)
class RawSitemap:
    """Raw ``<sitemap>`` child of a sitemap index."""

    loc: str
    lastmod: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SitemapIndex:
    """Child sitemap URLs listed by a sitemap index."""

    sitemaps: Tuple[str, ...]
    lastmod: Optional[datetime] = None
