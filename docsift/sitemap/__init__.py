# docsift/sitemap/__init__.py
"""Sitemap discovery, scoring and processing."""
