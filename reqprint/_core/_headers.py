from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from reqprint._core._dates import parse_http_date
from reqprint._core._ranges import IfRange, RangeHeader, parse_if_range, parse_range_header
from reqprint._utils import HEADERS_ENCODING, parse_unsigned

__all__ = ("Headers", "extract_headers", "parse_etag_list", "RECOGNIZED_HEADERS")

logger = logging.getLogger("reqprint.core.headers")

HeaderName = Union[str, bytes]
HeaderValue = Union[str, bytes]
RawHeaders = Union[Mapping[HeaderName, HeaderValue], Iterable[Tuple[HeaderName, HeaderValue]]]


def parse_etag_list(value: str) -> Optional[Tuple[str, ...]]:
    """
    Parse an If-Match / If-None-Match value into entity-tags.

    Quotes around each tag are stripped. Weak and strong tags are not told
    apart.

    Examples:
        >>> parse_etag_list('"abc", "def"')
        ('abc', 'def')
        >>> parse_etag_list("*")
        ('*',)
        >>> parse_etag_list(' "", ') is None
        True
    """
    etags = tuple(tag for tag in (item.strip().strip('"') for item in value.split(",")) if tag)
    return etags or None


# Header name -> (field name, parser). A parser returning None leaves the field absent.
RECOGNIZED_HEADERS: Mapping[str, Tuple[str, Callable[[str], Any]]] = MappingProxyType(
    {
        "host": ("host", str),
        "user-agent": ("user_agent", str),
        "accept": ("accept", str),
        "accept-encoding": ("accept_encoding", str),
        "accept-language": ("accept_language", str),
        "connection": ("connection", str),
        "cache-control": ("cache_control", str),
        "cookie": ("cookie", str),
        "authorization": ("authorization", str),
        "content-type": ("content_type", str),
        "content-length": ("content_length", parse_unsigned),
        "referer": ("referer", str),
        "origin": ("origin", str),
        "range": ("range", parse_range_header),
        "if-range": ("if_range", parse_if_range),
        "if-modified-since": ("if_modified_since", parse_http_date),
        "if-unmodified-since": ("if_unmodified_since", parse_http_date),
        "if-none-match": ("if_none_match", parse_etag_list),
        "if-match": ("if_match", parse_etag_list),
    }
)

_MASKED_FIELDS = ("cookie", "authorization")


@dataclass(frozen=True)
class Headers:
    """
    Typed view over the request headers that matter for caching.

    Recognized headers land in typed fields. Everything else is kept in
    `other`, keyed by lower-cased name; a header is never in both places.
    """

    host: Optional[str] = None
    user_agent: Optional[str] = None
    accept: Optional[str] = None
    accept_encoding: Optional[str] = None
    accept_language: Optional[str] = None
    connection: Optional[str] = None
    cache_control: Optional[str] = None
    cookie: Optional[str] = None
    authorization: Optional[str] = None
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    referer: Optional[str] = None
    origin: Optional[str] = None

    range: Optional[RangeHeader] = None
    if_range: Optional[IfRange] = None

    if_modified_since: Optional[datetime] = None
    if_unmodified_since: Optional[datetime] = None
    if_none_match: Optional[Tuple[str, ...]] = None
    if_match: Optional[Tuple[str, ...]] = None

    other: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> Optional[str]:
        """Look up an unrecognized header by name, case-insensitively."""
        return self.other.get(name.lower())

    def __repr__(self) -> str:
        parts = []
        for item in fields(self):
            if item.name == "other":
                continue
            value = getattr(self, item.name)
            if item.name in _MASKED_FIELDS and value is not None:
                value = "[PRESENT]"
            parts.append(f"{item.name}={value!r}")
        parts.append(f"other_headers_count={len(self.other)}")
        return f"Headers({', '.join(parts)})"


def _decode_name(name: HeaderName) -> str:
    if isinstance(name, bytes):
        name = name.decode(HEADERS_ENCODING)
    return name.strip().lower()


def _decode_text(value: HeaderValue) -> Optional[str]:
    if isinstance(value, str):
        return value
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _decode_raw(value: HeaderValue) -> str:
    if isinstance(value, str):
        return value
    return value.decode(HEADERS_ENCODING)


def _iter_headers(headers: RawHeaders) -> Iterable[Tuple[HeaderName, HeaderValue]]:
    # httpx.Headers.multi_items keeps repeated headers apart.
    multi_items = getattr(headers, "multi_items", None)
    if callable(multi_items):
        return multi_items()  # type: ignore[no-any-return]
    if isinstance(headers, Mapping):
        return headers.items()
    return headers


def extract_headers(headers: RawHeaders) -> Headers:
    """
    Build a `Headers` value from a raw header collection.

    Accepts a mapping or an iterable of `(name, value)` pairs; names and
    values may be `str` or `bytes`. Malformed recognized headers end up
    absent and are never reported as errors.
    """
    typed: Dict[str, Any] = {}
    seen = set()
    other: Dict[str, str] = {}

    for raw_name, raw_value in _iter_headers(headers):
        name = _decode_name(raw_name)

        if name not in RECOGNIZED_HEADERS:
            value = _decode_raw(raw_value)
            other[name] = f"{other[name]}, {value}" if name in other else value
            continue

        # The first occurrence of a recognized header wins.
        if name in seen:
            continue
        seen.add(name)

        text = _decode_text(raw_value)
        if text is None:
            logger.debug("Ignoring undecodable value of the %s header", name)
            continue

        field_name, parser = RECOGNIZED_HEADERS[name]
        parsed = parser(text.strip())
        if parsed is None:
            logger.debug("Ignoring malformed value of the %s header", name)
            continue
        typed[field_name] = parsed

    return Headers(**typed, other=MappingProxyType(other))
