# File: docsift/utils.py
"""docsift.utils: URL helpers shared by discovery, scoring and extraction."""

from __future__ import annotations

import posixpath
from typing import Iterable, List, Sequence
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from docsift.logger import logger

__all__: Sequence[str] = (
    "UnsafeUrlError",
    "site_root",
    "extract_host",
    "is_same_site",
    "resolve_reference",
    "path_segments",
    "remove_duplicates",
)


class UnsafeUrlError(ValueError):
    """A reference cannot be resolved without leaving the site or its scheme."""


def site_root(url: str) -> str:
    """Return ``scheme://host[:port]`` of *url*."""
    parsed = urlparse(url)
    return urlunparse((parsed.scheme, parsed.netloc, "", "", "", ""))


def extract_host(url_or_domain: str) -> str:
    """Return the lower-cased hostname of a URL, or the value itself for a bare domain."""
    if "://" not in url_or_domain:
        return url_or_domain.strip().strip("/").lower()
    try:
        return (urlparse(url_or_domain).hostname or "").lower()
    except ValueError:
        return ""


def is_same_site(url: str, base_domain: str) -> bool:
    """True when *url* lives on *base_domain* or one of its subdomains."""
    host = extract_host(url)
    base = extract_host(base_domain)
    if not base:
        return True
    return host == base or host.endswith("." + base)


def path_segments(url: str) -> List[str]:
    """Non-empty path segments of *url*."""
    return [seg for seg in urlparse(url).path.split("/") if seg]


def _escapes_root(base_path: str, ref_path: str) -> bool:
    if ref_path.startswith("/"):
        segments = ref_path.split("/")
    else:
        base_dir = posixpath.dirname(base_path) if not base_path.endswith("/") else base_path
        segments = base_dir.split("/") + ref_path.split("/")
    depth = 0
    for seg in segments:
        if seg in ("", "."):
            continue
        if seg == "..":
            depth -= 1
            if depth < 0:
                return True
        else:
            depth += 1
    return False


def resolve_reference(base_url: str, reference: str) -> str:
    """Resolve *reference* against *base_url*.

    Raises :class:`UnsafeUrlError` for empty references, non-HTTP(S) targets
    and relative paths whose ``..`` segments climb above the site root.
    """
    ref = reference.strip()
    if not ref:
        raise UnsafeUrlError("empty reference")

    ref_parsed = urlparse(ref)
    if not ref_parsed.scheme and not ref_parsed.netloc:
        if _escapes_root(unquote(urlparse(base_url).path), unquote(ref_parsed.path)):
            raise UnsafeUrlError(f"reference {reference!r} escapes the site root of {base_url}")

    absolute = urljoin(base_url, ref)
    parsed = urlparse(absolute)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise UnsafeUrlError(f"unsupported reference {reference!r}")
    return absolute


def remove_duplicates(urls: Iterable[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    items = list(urls)
    unique = list(dict.fromkeys(items))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
