"""
HTTP-date parsing and formatting.

Implements the three date grammars of RFC 7231 Section 7.1.1.1:

    IMF-fixdate  = Sun, 06 Nov 1994 08:49:37 GMT
    rfc850-date  = Sunday, 06-Nov-94 08:49:37 GMT
    asctime-date = Sun Nov  6 08:49:37 1994

Month and day names are matched against fixed tables, so parsing does not
depend on the process locale.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Callable, Optional, Tuple

from reqprint._exceptions import ParseError

__all__ = ("parse_http_date", "parse_imf_fixdate", "format_http_date")

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
DAY_NAMES_LONG = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_TIME = r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"

IMF_FIXDATE = re.compile(
    r"(?P<dow>[A-Za-z]{3}), (?P<day>\d{2}) (?P<month>[A-Za-z]{3}) (?P<year>\d{4}) " + _TIME + r" GMT",
)
RFC850_DATE = re.compile(
    r"(?P<dow>[A-Za-z]{6,9}), (?P<day>\d{2})-(?P<month>[A-Za-z]{3})-(?P<year>\d{2}) " + _TIME + r" GMT",
)
ASCTIME_DATE = re.compile(
    r"(?P<dow>[A-Za-z]{3}) (?P<month>[A-Za-z]{3}) (?P<day>[ \d]?\d) " + _TIME + r" (?P<year>\d{4})",
)


def resolve_two_digit_year(year: int) -> int:
    """
    Expand a two-digit year using the POSIX pivot.

    Values 69-99 map to 1969-1999 and 00-68 to 2000-2068, the same rule
    `time.strptime` applies to `%y`.
    """
    return year + (1900 if year >= 69 else 2000)


def _build(match: "re.Match[str]", year: int, day_names: Tuple[str, ...]) -> datetime:
    month = match.group("month")
    if month not in MONTHS:
        raise ParseError(f"Unknown month name {month!r}.")

    try:
        value = datetime(
            year,
            MONTHS.index(month) + 1,
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            tzinfo=timezone.utc,
        )
    except ValueError as exc:
        raise ParseError(str(exc)) from exc

    dow = match.group("dow")
    if dow not in day_names:
        raise ParseError(f"Unknown day name {dow!r}.")
    if day_names.index(dow) != value.weekday():
        raise ParseError(f"Day name {dow!r} does not match the date.")
    return value


def parse_imf_fixdate(text: str) -> datetime:
    match = IMF_FIXDATE.fullmatch(text)
    if match is None:
        raise ParseError("Not an IMF-fixdate.")
    return _build(match, int(match.group("year")), DAY_NAMES)


def parse_rfc850_date(text: str) -> datetime:
    match = RFC850_DATE.fullmatch(text)
    if match is None:
        raise ParseError("Not an RFC 850 date.")
    return _build(match, resolve_two_digit_year(int(match.group("year"))), DAY_NAMES_LONG)


def parse_asctime_date(text: str) -> datetime:
    match = ASCTIME_DATE.fullmatch(text)
    if match is None:
        raise ParseError("Not an asctime date.")
    return _build(match, int(match.group("year")), DAY_NAMES)


GRAMMARS: Tuple[Callable[[str], datetime], ...] = (
    parse_imf_fixdate,
    parse_rfc850_date,
    parse_asctime_date,
)


def parse_http_date(text: str) -> Optional[datetime]:
    """
    Parse an HTTP-date into an aware UTC datetime.

    Grammars are tried in the order IMF-fixdate, RFC 850, asctime; the first
    that matches wins. Anything else returns None.

    Examples:
        >>> parse_http_date("Sun, 06 Nov 1994 08:49:37 GMT")
        datetime.datetime(1994, 11, 6, 8, 49, 37, tzinfo=datetime.timezone.utc)
        >>> parse_http_date("Sun Nov  6 08:49:37 1994")
        datetime.datetime(1994, 11, 6, 8, 49, 37, tzinfo=datetime.timezone.utc)
        >>> parse_http_date("yesterday") is None
        True
    """
    text = text.strip()
    for grammar in GRAMMARS:
        try:
            return grammar(text)
        except ParseError:
            continue
    return None


def format_http_date(value: datetime) -> str:
    """
    Format a datetime as an IMF-fixdate, e.g. 'Sun, 06 Nov 1994 08:49:37 GMT'.

    Naive datetimes are taken to be UTC. Fractions of a second are dropped.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc).replace(microsecond=0)
    return format_datetime(value, usegmt=True)
