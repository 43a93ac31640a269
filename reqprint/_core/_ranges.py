from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from typing_extensions import Self

from reqprint._core._dates import parse_imf_fixdate
from reqprint._exceptions import ParseError, ValidationError
from reqprint._utils import parse_unsigned

__all__ = ("RangeSpec", "RangeHeader", "IfRange", "parse_range_header", "parse_if_range")

logger = logging.getLogger("reqprint.core.ranges")


@dataclass(frozen=True)
class RangeSpec:
    start: Optional[int] = None
    end: Optional[int] = None

    def __str__(self) -> str:
        return f"{'' if self.start is None else self.start}-{'' if self.end is None else self.end}"


@dataclass(frozen=True)
class RangeHeader:
    unit: str
    ranges: Tuple[RangeSpec, ...]

    def __str__(self) -> str:
        return f"{self.unit}={','.join(str(spec) for spec in self.ranges)}"


@dataclass(frozen=True)
class IfRange:
    """
    The validator carried by an If-Range header.

    Exactly one of `etag` and `date` is set. Use `from_etag` and `from_date`
    rather than the constructor.
    """

    etag: Optional[str] = None
    date: Optional[datetime] = None

    def __post_init__(self) -> None:
        if (self.etag is None) == (self.date is None):
            raise ValidationError("If-Range holds either an entity-tag or a date, not both.")

    @classmethod
    def from_etag(cls, etag: str) -> Self:
        return cls(etag=etag)

    @classmethod
    def from_date(cls, date: datetime) -> Self:
        return cls(date=date)

    @property
    def is_etag(self) -> bool:
        return self.etag is not None


def parse_range_spec(segment: str) -> RangeSpec:
    # Example: "0-499", "500-", "-500"
    if segment.count("-") != 1:
        raise ParseError(f"Invalid range part: {segment}")

    start_str, end_str = segment.split("-", 1)
    spec = RangeSpec(start=parse_unsigned(start_str), end=parse_unsigned(end_str))
    if spec.start is None and spec.end is None:
        raise ParseError(f"Range part has no usable bound: {segment}")
    return spec


def parse_range_header(value: str) -> Optional[RangeHeader]:
    """
    Parse a Range header value.

    Malformed ranges are dropped one by one rather than failing the whole
    header. Returns None when no usable range remains.

    Examples:
        >>> parse_range_header("bytes=0-499")
        RangeHeader(unit='bytes', ranges=(RangeSpec(start=0, end=499),))
        >>> parse_range_header("bytes=500-,oops,-200")
        RangeHeader(unit='bytes', ranges=(RangeSpec(start=500, end=None), RangeSpec(start=None, end=200)))
        >>> parse_range_header("bytes=") is None
        True
    """
    if "=" not in value:
        return None

    unit, range_list = value.split("=", 1)
    unit = unit.strip()
    if not unit:
        return None

    ranges: List[RangeSpec] = []
    for segment in range_list.split(","):
        segment = segment.strip()
        if not segment:
            continue
        try:
            ranges.append(parse_range_spec(segment))
        except ParseError as exc:
            logger.debug("Dropping range segment: %s", exc)

    if not ranges:
        return None
    return RangeHeader(unit=unit, ranges=tuple(ranges))


def looks_like_entity_tag(value: str) -> bool:
    return value.startswith('"') or value.startswith("W/")


def parse_if_range(value: str) -> Optional[IfRange]:
    """
    Parse an If-Range header value into an entity-tag or a date.

    Quoted values are always entity-tags. Anything else is tried as an
    IMF-fixdate first and falls back to an entity-tag.
    """
    value = value.strip()
    if not value:
        return None

    if not looks_like_entity_tag(value):
        try:
            return IfRange.from_date(parse_imf_fixdate(value))
        except ParseError:
            pass

    etag = value.strip('"')
    if not etag:
        return None
    return IfRange.from_etag(etag)
