# File: tests/test_depth.py
import pytest

from docsift.sitemap.depth import assign_depths, calculate_url_depth
from docsift.sitemap.models import SitemapEntry


@pytest.mark.parametrize(
    "url,method,expected",
    [
        ("https://x.test/", "hybrid", 0),
        ("https://x.test/a/b/c", "path", 3),
        ("https://x.test/a/b/c", "hybrid", 3),
        ("https://x.test/docs/a/b/c", "path", 4),
        ("https://x.test/docs/a/b/c", "semantic", 2),
        ("https://x.test/docs/a/b/c", "hybrid", 2),
        ("https://x.test/en/docs/a/b", "hybrid", 2),
        ("https://x.test/en/API/v1", "hybrid", 2),
        ("https://x.test/blog/2024/post", "semantic", 3),
    ],
)
def test_calculate_url_depth(url, method, expected):
    assert calculate_url_depth(url, method) == expected


def test_base_depth_is_added():
    assert calculate_url_depth("https://x.test/a", "path", base_depth=2) == 3


def test_assign_depths_returns_copies():
    entries = [SitemapEntry(url="https://x.test/docs/a/b", score=0.3), SitemapEntry(url="https://x.test/")]
    result = assign_depths(entries)
    assert [e.calculated_depth for e in result] == [1, 0]
    assert result[0].score == 0.3
    assert entries[0].calculated_depth is None
