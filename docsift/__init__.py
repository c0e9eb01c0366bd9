# docsift/__init__.py
"""
DocSift package initializer.
Defines package version and exposes the sitemap core and CLI.
"""
__version__ = "0.1.0"

from docsift.parser.html_parser import ContentExtractor, ExtractedContent
from docsift.sitemap.models import SitemapEntry
from docsift.sitemap.processor import SitemapProcessor, merge_entries

from .cli import cli  # экспорт для pytest

__all__ = [
    "ContentExtractor",
    "ExtractedContent",
    "SitemapEntry",
    "SitemapProcessor",
    "__version__",
    "cli",
    "merge_entries",
]
