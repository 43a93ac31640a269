from __future__ import annotations

import hashlib
import typing as tp
from urllib.parse import parse_qsl

HEADERS_ENCODING = "iso-8859-1"

# Enough for any unsigned 64-bit value. Longer digit runs are rejected before int().
MAX_UNSIGNED_DIGITS = 20

T = tp.TypeVar("T")


def first_token(value: str, separator: str = ",") -> tp.Optional[str]:
    """
    Return the first non-blank item of a list-valued header, without parameters.

    Examples:
        >>> first_token("text/html;q=0.9, application/json")
        'text/html'
        >>> first_token(" , en-US")
        'en-US'
        >>> first_token("") is None
        True
    """
    for item in value.split(separator):
        item = item.split(";", 1)[0].strip()
        if item:
            return item
    return None


def parse_query(query_string: str) -> tp.Dict[str, str]:
    """
    Parse a raw query string into a mapping with lower-cased parameter names.

    The first occurrence of a repeated parameter wins. Blank values are kept,
    so `?init=` still yields `{"init": ""}`.
    """
    params: tp.Dict[str, str] = {}
    for name, value in parse_qsl(query_string, keep_blank_values=True):
        params.setdefault(name.lower(), value)
    return params


def first_of(mapping: tp.Mapping[str, T], names: tp.Iterable[str]) -> tp.Optional[T]:
    """
    Return the value of the first name present in `mapping`.

    Example:
        ```python
        first_of({"res": "720p"}, ("resolution", "res"))  # '720p'
        ```
    """
    for name in names:
        if name in mapping:
            return mapping[name]
    return None


def parse_unsigned(value: str) -> tp.Optional[int]:
    """Parse a plain decimal integer, return None if it is not one or is too long."""
    value = value.strip()
    if not value or len(value) > MAX_UNSIGNED_DIGITS or not value.isascii() or not value.isdigit():
        return None
    return int(value)


def hash_text(text: str, digest_size: tp.Optional[int] = None) -> str:
    """
    Hash `text` and return the hex digest truncated to `digest_size` bytes.

    BLAKE2b is used when available. Interpreters built in FIPS mode may not
    provide it, in which case SHA-256 is used instead. `None` returns the
    algorithm's full-width digest.
    """
    data = text.encode("utf-8")
    try:
        if digest_size is None:
            return hashlib.blake2b(data).hexdigest()
        return hashlib.blake2b(data, digest_size=digest_size).hexdigest()
    except (AttributeError, ValueError):
        digest = hashlib.sha256(data).hexdigest()
        if digest_size is None:
            return digest
        return digest[: digest_size * 2]
