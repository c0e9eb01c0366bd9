# File: docsift/report/__init__.py
"""docsift.report: JSON-отчёты, используемые CLI и тестами."""

from docsift.report.json_report import content_to_data, dumps, entries_to_data, render_json

__all__ = ["content_to_data", "dumps", "entries_to_data", "render_json"]
