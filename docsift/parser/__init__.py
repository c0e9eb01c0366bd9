# docsift/parser/__init__.py
"""Parsers for sitemap documents and HTML pages."""
