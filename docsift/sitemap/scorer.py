# docsift/sitemap/scorer.py
"""
Ranking of sitemap entries by likely documentation value.

Scores are plain floats, lower meaning "crawl earlier". Every function here is
pure: no I/O, no clock reads, no mutation of its inputs. Recency only counts
when :attr:`ScoringOptions.reference_time` is set explicitly.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Pattern, Sequence
from urllib.parse import parse_qsl, urlparse

from docsift.config import ScoringOptions
from docsift.logger import logger
from docsift.sitemap.models import SitemapEntry
from docsift.utils import is_same_site

NEUTRAL_PRIORITY = 0.5
DEPTH_WEIGHT = 0.1
ROOT_BONUS = 0.3
TOP_LEVEL_BONUS = 0.15
DOC_KEYWORD_BONUS = 0.2
NOISE_PENALTY = 0.5
PAGINATION_PENALTY = 0.3
FRAGMENT_PENALTY = 0.4
FOREIGN_DOMAIN_PENALTY = 1.0
PATTERN_BONUS = 0.25
PATTERN_PENALTY = 0.4
UNPARSEABLE_PENALTY = 2.0
RECENCY_WINDOW_DAYS = 90.0

NOISE_KEYWORDS: tuple[str, ...] = (
    "login",
    "logout",
    "signin",
    "signup",
    "register",
    "privacy",
    "terms",
    "cookie",
    "legal",
)
PAGINATION_PARAMS = frozenset({"page", "p", "pg", "offset", "start"})
_PAGINATION_PATH_RE = re.compile(r"/page/\d+/?$", re.IGNORECASE)


def _compile(patterns: Sequence[str], kind: str) -> List[Pattern[str]]:
    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error:
            logger.warning("Invalid %s pattern regex: %s", kind, pattern)
    return compiled


def _is_paginated(path: str, query: str) -> bool:
    if _PAGINATION_PATH_RE.search(path):
        return True
    return any(key.lower() in PAGINATION_PARAMS for key, _ in parse_qsl(query, keep_blank_values=True))


def _recency_bonus(lastmod: datetime, reference: datetime, boost: float) -> float:
    if lastmod.tzinfo is None:
        lastmod = lastmod.replace(tzinfo=timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    age_days = (reference - lastmod).total_seconds() / 86400
    return max(0.0, RECENCY_WINDOW_DAYS - max(age_days, 0.0)) / RECENCY_WINDOW_DAYS * boost


class SitemapScorer:
    """Scores, filters and sorts :class:`SitemapEntry` collections."""

    def __init__(self, options: Optional[ScoringOptions] = None) -> None:
        self.options = options or ScoringOptions()
        self._keywords = [k.lower() for k in self.options.priority_keywords]
        self._boost_patterns = _compile(self.options.priority_patterns, "priority")
        self._penalty_patterns = _compile(self.options.deprioritize_patterns, "deprioritize")

    def calculate_url_score(
        self,
        url: str,
        base_domain: str = "",
        priority: Optional[float] = None,
        lastmod: Optional[datetime] = None,
    ) -> float:
        """Score *url*; lower is more important."""
        if priority is not None and self.options.use_sitemap_priorities:
            score = 1.0 - priority
        else:
            score = NEUTRAL_PRIORITY

        try:
            parsed = urlparse(url)
        except ValueError:
            return round(score + UNPARSEABLE_PENALTY, 6)
        if not parsed.scheme or not parsed.netloc:
            return round(score + UNPARSEABLE_PENALTY, 6)

        path = parsed.path.lower()
        segments = [seg for seg in path.split("/") if seg]
        score += len(segments) * DEPTH_WEIGHT
        if not segments:
            score -= ROOT_BONUS
        elif len(segments) == 1:
            score -= TOP_LEVEL_BONUS

        score -= DOC_KEYWORD_BONUS * sum(1 for keyword in self._keywords if keyword in path)

        if any(keyword in path for keyword in NOISE_KEYWORDS):
            score += NOISE_PENALTY
        if _is_paginated(path, parsed.query):
            score += PAGINATION_PENALTY
        if parsed.fragment:
            score += FRAGMENT_PENALTY

        if any(p.search(url) for p in self._boost_patterns):
            score -= PATTERN_BONUS
        if any(p.search(url) for p in self._penalty_patterns):
            score += PATTERN_PENALTY

        if base_domain and not is_same_site(url, base_domain):
            score += FOREIGN_DOMAIN_PENALTY

        reference = self.options.reference_time
        if lastmod is not None and reference is not None and self.options.recency_boost:
            score -= _recency_bonus(lastmod, reference, self.options.recency_boost)

        return round(max(0.0, score), 6)

    def score_entry(self, entry: SitemapEntry, base_domain: str = "") -> SitemapEntry:
        return entry.with_score(
            self.calculate_url_score(entry.url, base_domain, entry.priority, entry.lastmod)
        )

    def filter_entries(
        self,
        entries: Iterable[SitemapEntry],
        include_patterns: Optional[Sequence[str]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> List[SitemapEntry]:
        """Keep entries matching any include pattern and no exclude pattern."""
        result = list(entries)
        if include_patterns:
            include = _compile(include_patterns, "include")
            result = [e for e in result if any(p.search(e.url) for p in include)]
        if exclude_patterns:
            exclude = _compile(exclude_patterns, "exclude")
            result = [e for e in result if not any(p.search(e.url) for p in exclude)]
        return result

    def sort_entries_by_priority(
        self, entries: Iterable[SitemapEntry], base_domain: str = ""
    ) -> List[SitemapEntry]:
        """Ascending by score; entries without a score are scored first."""
        scored = [e if e.score is not None else self.score_entry(e, base_domain) for e in entries]
        return sorted(scored, key=lambda e: e.score)  # type: ignore[arg-type,return-value]


__all__ = ["SitemapScorer", "ScoringOptions"]
