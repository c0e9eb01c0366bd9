# === FILE: docsift/parser/html_parser.py ===
"""Main-content extraction from documentation pages.

:class:`ContentExtractor` turns raw HTML into an :class:`ExtractedContent`
record:

* title: ``<title>``, or the first ``<h1>`` when the title looks generic.
* description: ``meta[name=description]`` / ``og:description``.
* headings and code blocks in document order.
* content: cleaned text of the first container selector that yields enough
  text, otherwise of ``<body>``, with navigation chrome removed.

Pages whose text stays under ``min_content_length`` are not extractable and
produce ``None``. The parsed document itself is never modified: chrome is
stripped from copies of the matched containers.
"""
from __future__ import annotations

import copy
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

from docsift.config import ExtractorSettings
from docsift.logger import logger
from docsift.utils import extract_host

__all__: Sequence[str] = ("CodeBlock", "ContentExtractor", "ExtractedContent", "Heading", "clean_text")

TITLE_MAX_LENGTH = 60
H1_TITLE_RANGE = (6, 99)
CODE_BLOCK_SELECTOR = "pre code, .highlight, .code, pre[class*='language-']"

_ALWAYS_STRIPPED = ("script", "style", "noscript", "template")
_LANGUAGE_RE = re.compile(r"language-(\w+)")
_HSPACE_RE = re.compile(r"[^\S\n]+")
_NEWLINES_RE = re.compile(r"\s*\n\s*")

# Container selectors of well-known documentation hosts, tried before the defaults.
_SOURCE_SELECTORS: dict[str, Tuple[str, ...]] = {
    "github": (".markdown-body",),
    "readthedocs": (".document", "[role=main]"),
    "mdn": ("article", "#content"),
}


@dataclass(frozen=True, slots=True)
class Heading:
    text: str
    level: int


@dataclass(frozen=True, slots=True)
class CodeBlock:
    code: str
    language: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ExtractedContent:
    """Structured result of one extraction call."""

    title: str
    content: str
    description: Optional[str] = None
    headings: Optional[Tuple[Heading, ...]] = None
    code_blocks: Optional[Tuple[CodeBlock, ...]] = None


def clean_text(text: str) -> str:
    """Collapse blank runs to one space and newline runs to one newline, then trim."""
    if not text:
        return ""
    text = _HSPACE_RE.sub(" ", text)
    text = _NEWLINES_RE.sub("\n", text)
    return text.strip()


def detect_source_type(url: str) -> str:
    host = extract_host(url)
    if host == "github.com" or host.endswith(".github.com") or host.endswith("githubusercontent.com"):
        return "github"
    if host.endswith("readthedocs.io") or host.endswith("rtfd.io"):
        return "readthedocs"
    if host == "developer.mozilla.org":
        return "mdn"
    return "generic"


class ContentExtractor:
    """Best-effort extraction of the readable part of a page."""

    def __init__(self, settings: Optional[ExtractorSettings] = None) -> None:
        self.settings = settings or ExtractorSettings()
        self._exclude = list(dict.fromkeys([*self.settings.exclude_selectors, *_ALWAYS_STRIPPED]))

    def extract(self, html: Union[str, bytes], url: str) -> Optional[ExtractedContent]:
        """Return the page content, or ``None`` when it is not extractable.

        Raw bytes are decoded by BeautifulSoup, which honours ``<meta charset>``.
        """
        try:
            return self._extract(html, url)
        except Exception as exc:
            logger.warning("Content extraction failed for %s: %s", url, exc)
            return None

    def _extract(self, html: Union[str, bytes], url: str) -> Optional[ExtractedContent]:
        soup = BeautifulSoup(html, "html.parser")
        minimum = self.settings.min_content_length

        content = self._main_content(soup, url)
        if not content or len(content) < minimum:
            logger.debug("Content of %s below %d chars, skipped", url, minimum)
            return None

        headings = self._headings(soup)
        code_blocks = self._code_blocks(soup)
        return ExtractedContent(
            title=self._title(soup),
            content=content,
            description=self._description(soup) if self.settings.extract_metadata else None,
            headings=tuple(headings) if headings else None,
            code_blocks=tuple(code_blocks) if code_blocks else None,
        )

    # ------------------------------------------------------------------ #

    @staticmethod
    def _title(soup: BeautifulSoup) -> str:
        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""
        if not title or " | " in title or len(title) > TITLE_MAX_LENGTH:
            h1 = soup.find("h1")
            if h1 is not None:
                text = clean_text(h1.get_text(" "))
                low, high = H1_TITLE_RANGE
                if low <= len(text) <= high:
                    title = text
        return title

    @staticmethod
    def _description(soup: BeautifulSoup) -> Optional[str]:
        for attrs in ({"name": "description"}, {"property": "og:description"}):
            meta = soup.find("meta", attrs=attrs)
            if isinstance(meta, Tag):
                value = str(meta.get("content") or "").strip()
                if value:
                    return value
        return None

    @staticmethod
    def _headings(soup: BeautifulSoup) -> List[Heading]:
        headings: List[Heading] = []
        for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = clean_text(tag.get_text(" "))
            if text:
                headings.append(Heading(text=text, level=int(tag.name[1])))
        return headings

    @staticmethod
    def _code_blocks(soup: BeautifulSoup) -> List[CodeBlock]:
        blocks: List[CodeBlock] = []
        for tag in soup.select(CODE_BLOCK_SELECTOR):
            code = tag.get_text().strip()
            if not code:
                continue
            language = None
            for token in tag.get("class") or []:
                match = _LANGUAGE_RE.match(token)
                if match:
                    language = match.group(1)
                    break
            blocks.append(CodeBlock(code=code, language=language))
        return blocks

    def _container_selectors(self, url: str) -> List[str]:
        preferred = _SOURCE_SELECTORS.get(detect_source_type(url), ())
        return list(dict.fromkeys([*preferred, *self.settings.include_selectors]))

    def _clean_copy_text(self, element: Tag) -> str:
        clone = copy.copy(element)
        for selector in self._exclude:
            for node in clone.select(selector):
                node.decompose()
        return clean_text(clone.get_text(" "))

    def _main_content(self, soup: BeautifulSoup, url: str) -> str:
        minimum = self.settings.min_content_length
        content = ""
        for selector in self._container_selectors(url):
            matches = soup.select(selector)
            if not matches:
                continue
            content = "\n".join(filter(None, (self._clean_copy_text(m) for m in matches)))
            if len(content) > minimum:
                return content

        if not content or len(content) < minimum:
            body = soup.body or soup
            content = self._clean_copy_text(body)
        return content
