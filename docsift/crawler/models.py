# docsift/crawler/models.py
"""
Data models for the DocSift HTTP layer.
"""
from __future__ import annotations

import codecs
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_CHARSET = "utf-8"

_CHARSET_RE = re.compile(r"""charset\s*=\s*["']?([\w.:-]+)""", re.IGNORECASE)


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """``charset`` parameter of a Content-Type header value, if any."""
    if not content_type:
        return None
    match = _CHARSET_RE.search(content_type)
    return match.group(1) if match else None


def decode_body(body: bytes, charset: Optional[str] = None) -> str:
    """Decode *body* with *charset*; unknown or missing charsets fall back to UTF-8."""
    encoding = DEFAULT_CHARSET
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            pass
    return body.decode(encoding, errors="replace")


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Status, headers (lower-cased names) and raw body of one GET request.

    ``encoding`` is the charset reported by the transport; without it the
    ``content-type`` header is consulted.
    """

    url: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def charset(self) -> Optional[str]:
        return self.encoding or charset_from_content_type(self.header("content-type"))

    @property
    def text(self) -> str:
        return decode_body(self.body, self.charset)

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)
