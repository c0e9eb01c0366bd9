# docsift/crawler/robots.py
"""
Parser and checker for robots.txt rules.

Besides Allow/Disallow groups the parser keeps every ``Sitemap:`` directive
(they are global, not bound to a user-agent group) and per-group
``Crawl-delay`` values.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional


class RobotsTxtRules:
    """Parser and checker for robots.txt rules."""

    _WILDCARD_RE = re.compile(r"(\*|\$)")

    def __init__(self, text: str) -> None:
        self.groups: List[Dict[str, Any]] = []
        self.sitemaps: List[str] = []
        self._regex_cache: Dict[str, re.Pattern[str]] = {}
        self._parse(text)

    def can_fetch(self, user_agent: str, path: str) -> bool:
        """Return True if the user_agent can fetch the given path under the rules.

        The longest matching rule wins; on equal length Allow beats Disallow.
        """
        group = self._match_group(user_agent)
        if group is None:
            return True
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in group["directives"]:
            if not self._match_path(path, pattern):
                continue
            length = self._rule_len(pattern)
            if length > best_len or (length == best_len and directive == "allow" and allow is False):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def crawl_delay(self, user_agent: str) -> Optional[float]:
        group = self._match_group(user_agent)
        return None if group is None else group["crawl_delay"]

    def _new_group(self) -> Dict[str, Any]:
        group: Dict[str, Any] = {"agents": [], "directives": [], "crawl_delay": None}
        self.groups.append(group)
        return group

    def _parse(self, text: str) -> None:
        """Parse robots.txt content into user-agent groups, directives and sitemaps."""
        current: Optional[Dict[str, Any]] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "sitemap":
                if val:
                    self.sitemaps.append(val)
                continue
            if key == "user-agent":
                if current is None or current["directives"] or current["crawl_delay"] is not None:
                    current = self._new_group()
                current["agents"].append(val.lower())
                continue
            if current is None:
                current = self._new_group()
                current["agents"].append("*")
            if key in ("allow", "disallow"):
                # skip empty disallow (means allow all)
                if key == "disallow" and not val:
                    continue
                current["directives"].append((key, val))
            elif key == "crawl-delay":
                try:
                    current["crawl_delay"] = float(val)
                except ValueError:
                    pass

    def _match_group(self, user_agent: str) -> Optional[Dict[str, Any]]:
        """Select the group naming this user-agent, falling back to ``*``."""
        ua = user_agent.lower()
        for group in self.groups:
            if any(agent != "*" and ua.startswith(agent) for agent in group["agents"]):
                return group
        for group in self.groups:
            if "*" in group["agents"]:
                return group
        return None

    def _match_path(self, path: str, pattern: str) -> bool:
        if pattern not in self._regex_cache:
            esc = re.escape(pattern).replace(r"\*", ".*")
            if pattern.endswith("$"):
                esc = esc[:-2] + "$"
            self._regex_cache[pattern] = re.compile(f"^{esc}")
        return bool(self._regex_cache[pattern].match(path))

    @classmethod
    def _rule_len(cls, pattern: str) -> int:
        return len(cls._WILDCARD_RE.sub("", pattern))
