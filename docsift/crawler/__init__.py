# docsift/crawler/__init__.py
"""HTTP access: client protocol, aiohttp implementation, robots.txt rules."""
