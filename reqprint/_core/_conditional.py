"""
Conditional request evaluation (RFC 7232, RFC 7233 Section 3.2).

The current validators of the resource always come from the caller, usually
the storage layer. Nothing here guesses them.
"""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from reqprint._core.models import RequestContext

__all__ = (
    "ConditionalOutcome",
    "should_return_not_modified",
    "should_return_precondition_failed",
    "can_use_range",
    "evaluate_conditions",
)

logger = logging.getLogger("reqprint.core.conditional")


class ConditionalOutcome(enum.Enum):
    NOT_MODIFIED = 304
    PRECONDITION_FAILED = 412
    RANGE_USABLE = 206
    NO_DECISION = 0


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # HTTP-dates carry whole seconds only.
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=0)


def _normalize_etag(etag: Optional[str]) -> Optional[str]:
    if etag is None:
        return None
    return etag.strip().strip('"')


def _etag_listed(etags: Tuple[str, ...], etag: str) -> bool:
    return "*" in etags or etag in etags


def should_return_not_modified(
    ctx: RequestContext,
    last_modified: Optional[datetime] = None,
    etag: Optional[str] = None,
) -> bool:
    """
    Decide whether the cached representation can be answered with 304.

    A resource modified at or before If-Modified-Since counts as not
    modified. Otherwise If-None-Match matches on `*` or an exact tag.
    """
    headers = ctx.headers
    etag = _normalize_etag(etag)
    last_modified = _as_utc(last_modified)

    if headers.if_modified_since is not None and last_modified is not None:
        if last_modified <= headers.if_modified_since:
            return True

    if headers.if_none_match is not None and etag is not None:
        if _etag_listed(headers.if_none_match, etag):
            return True

    return False


def should_return_precondition_failed(
    ctx: RequestContext,
    last_modified: Optional[datetime] = None,
    etag: Optional[str] = None,
) -> bool:
    """
    Decide whether the request must be answered with 412.

    A resource without a current entity-tag can never satisfy a non-empty
    If-Match.
    """
    headers = ctx.headers
    etag = _normalize_etag(etag)
    last_modified = _as_utc(last_modified)

    if headers.if_unmodified_since is not None and last_modified is not None:
        if last_modified > headers.if_unmodified_since:
            return True

    if headers.if_match is not None:
        if etag is not None:
            if not _etag_listed(headers.if_match, etag):
                return True
        elif headers.if_match:
            return True

    return False


def can_use_range(
    ctx: RequestContext,
    last_modified: Optional[datetime] = None,
    etag: Optional[str] = None,
) -> bool:
    if_range = ctx.headers.if_range
    if if_range is None:
        return True

    if if_range.etag is not None:
        etag = _normalize_etag(etag)
        return etag is not None and etag == if_range.etag

    assert if_range.date is not None
    last_modified = _as_utc(last_modified)
    return last_modified is not None and last_modified <= if_range.date


def evaluate_conditions(
    ctx: RequestContext,
    last_modified: Optional[datetime] = None,
    etag: Optional[str] = None,
) -> ConditionalOutcome:
    """
    Combine the conditional predicates in the order HTTP evaluates them.

    Preconditions are checked before If-Modified-Since / If-None-Match, so
    412 wins over 304. `RANGE_USABLE` is only reported for requests that
    carry a Range header.
    """
    if should_return_precondition_failed(ctx, last_modified, etag):
        outcome = ConditionalOutcome.PRECONDITION_FAILED
    elif should_return_not_modified(ctx, last_modified, etag):
        outcome = ConditionalOutcome.NOT_MODIFIED
    elif ctx.headers.range is not None and can_use_range(ctx, last_modified, etag):
        outcome = ConditionalOutcome.RANGE_USABLE
    else:
        outcome = ConditionalOutcome.NO_DECISION

    logger.debug("Conditional evaluation: method=%s uri=%s outcome=%s", ctx.method, ctx.uri, outcome.name)
    return outcome
