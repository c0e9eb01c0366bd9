# docsift/sitemap/depth.py
"""
Crawl-depth assignment for sitemap entries.

The crawl scheduler limits how deep it follows links; sitemap URLs arrive
without a link path, so their depth is derived from the URL itself.
Documentation and API sections count as shallower than their raw segment
count.
"""
from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, List, Literal, Sequence

from docsift.logger import logger
from docsift.sitemap.models import SitemapEntry
from docsift.utils import path_segments

DepthMethod = Literal["path", "semantic", "hybrid"]

DOC_PATH_MARKERS: tuple[str, ...] = (
    "docs",
    "documentation",
    "guide",
    "guides",
    "tutorial",
    "help",
    "manual",
    "reference",
)
API_PATH_MARKERS: tuple[str, ...] = ("api", "apis", "endpoint", "endpoints", "reference")


def calculate_url_depth(
    url: str,
    method: DepthMethod = "hybrid",
    base_depth: int = 0,
    doc_markers: Sequence[str] = DOC_PATH_MARKERS,
    api_markers: Sequence[str] = API_PATH_MARKERS,
) -> int:
    """Depth of *url* relative to the site root.

    ``path``      one level per path segment.
    ``semantic``  half the segments (rounded up) when any segment is a marker.
    ``hybrid``    full depth up to the first marker, half depth after it.
    """
    try:
        segments = [seg.lower() for seg in path_segments(url)]
    except ValueError as exc:
        logger.warning("Error calculating URL depth for %s: %s", url, exc)
        return base_depth + 1

    if method == "path" or not segments:
        return base_depth + len(segments)

    markers = set(doc_markers) | set(api_markers)
    marker_index = next((i for i, seg in enumerate(segments) if seg in markers), -1)

    if marker_index < 0:
        return base_depth + len(segments)
    if method == "semantic":
        return base_depth + math.ceil(len(segments) / 2)
    remaining = len(segments) - marker_index - 1
    return base_depth + marker_index + math.ceil(remaining / 2)


def assign_depths(
    entries: Iterable[SitemapEntry],
    method: DepthMethod = "hybrid",
    base_depth: int = 0,
) -> List[SitemapEntry]:
    """Copies of *entries* with ``calculated_depth`` filled in."""
    return [
        replace(entry, calculated_depth=calculate_url_depth(entry.url, method, base_depth))
        for entry in entries
    ]


__all__ = ["DepthMethod", "assign_depths", "calculate_url_depth"]
