# File: tests/test_utils.py
import pytest

from docsift.utils import (
    UnsafeUrlError,
    extract_host,
    is_same_site,
    path_segments,
    remove_duplicates,
    resolve_reference,
    site_root,
)


def test_site_root_keeps_port():
    assert site_root("https://docs.example.com:8443/a/b?x=1#y") == "https://docs.example.com:8443"


def test_extract_host():
    assert extract_host("https://Docs.Example.com/path") == "docs.example.com"
    assert extract_host("example.com/") == "example.com"


@pytest.mark.parametrize(
    "url,base,expected",
    [
        ("https://example.com/a", "https://example.com", True),
        ("https://docs.example.com/a", "https://example.com", True),
        ("https://example.org/a", "https://example.com", False),
        ("https://notexample.com/a", "example.com", False),
        ("https://anything.test/", "", True),
    ],
)
def test_is_same_site(url, base, expected):
    assert is_same_site(url, base) is expected


def test_path_segments():
    assert path_segments("https://x.test/docs//api/v1/") == ["docs", "api", "v1"]
    assert path_segments("https://x.test") == []


@pytest.mark.parametrize(
    "reference,expected",
    [
        ("/sitemap.xml", "https://example.com/sitemap.xml"),
        ("sitemap.xml", "https://example.com/docs/sitemap.xml"),
        ("../sitemap.xml", "https://example.com/sitemap.xml"),
        ("https://cdn.example.org/map.xml", "https://cdn.example.org/map.xml"),
    ],
)
def test_resolve_reference(reference, expected):
    assert resolve_reference("https://example.com/docs/page", reference) == expected


@pytest.mark.parametrize(
    "reference",
    [
        "",
        "   ",
        "../../etc/passwd",
        "%2e%2e/%2e%2e/secret",
        "/../outside",
        "javascript:alert(1)",
        "mailto:team@example.com",
    ],
)
def test_resolve_reference_rejects_unsafe(reference):
    with pytest.raises(UnsafeUrlError):
        resolve_reference("https://example.com/docs/page", reference)


def test_remove_duplicates_preserves_order():
    assert remove_duplicates(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
