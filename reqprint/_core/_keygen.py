from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional

from reqprint._core._classifier import DEFAULT_RULES, ClassifierRules, classify_request
from reqprint._core.models import ContentCategory, ContentClassification, RequestContext
from reqprint._exceptions import ValidationError
from reqprint._utils import first_of, first_token, hash_text

__all__ = ("KeyOptions", "derive_key", "key_segments", "normalize_range", "CATEGORY_CODES")

logger = logging.getLogger("reqprint.core.keygen")

# Stored keys depend on these codes, tags and their order. Changing any of
# them moves every request into a new cache partition.
CATEGORY_CODES: Mapping[ContentCategory, str] = {
    ContentCategory.VIDEO: "vid",
    ContentCategory.AUDIO: "aud",
    ContentCategory.STREAMING_MANIFEST: "str",
    ContentCategory.MEDIA_SEGMENT: "seg",
    ContentCategory.IMAGE: "img",
    ContentCategory.DOCUMENT: "doc",
    ContentCategory.SCRIPT: "js",
    ContentCategory.STYLESHEET: "css",
    ContentCategory.HTML: "html",
    ContentCategory.DATA: "data",
    ContentCategory.OTHER: "gen",
}
INIT_SEGMENT_CODE = "init"
SEPARATOR = "|"
PLAYLIST_PARAMS = ("playlist", "pl", "variant")

MAX_DIGEST_SIZE = 32

# Values matching this are already canonical and may appear in clear text.
CLEAR_VALUE = re.compile(r"[a-z0-9.]{1,32}")


@dataclass(frozen=True)
class KeyOptions:
    """
    Configuration for cache key derivation.

    Attributes:
    ----------
    identity_digest_size : int
        Size in bytes of the `(method, URI)` digest. Default: 16.

    segment_digest_size : int
        Size in bytes of every other hashed segment. Default: 8.

        Short digests keep keys compact at the price of a small collision
        probability per segment. 8 bytes gives 2**64 possible values.

    full_width : bool
        Use untruncated digests for every segment. Default: False.

        Examples:
        --------
        >>> KeyOptions().segment_digest_size
        8
        >>> KeyOptions(full_width=True).full_width
        True
    """

    identity_digest_size: int = 16
    segment_digest_size: int = 8
    full_width: bool = False

    def __post_init__(self) -> None:
        for name in ("identity_digest_size", "segment_digest_size"):
            size = getattr(self, name)
            if not 1 <= size <= MAX_DIGEST_SIZE:
                raise ValidationError(f"The option '{name}' must be between 1 and {MAX_DIGEST_SIZE}, but got {size}.")

    def identity_hash(self, text: str) -> str:
        return hash_text(text, None if self.full_width else self.identity_digest_size)

    def short_hash(self, text: str) -> str:
        return hash_text(text, None if self.full_width else self.segment_digest_size)


def normalize_range(value: str) -> str:
    """
    Reduce a Range or Content-Range value to a canonical form.

    Examples:
        >>> normalize_range("Bytes= 0-99")
        '0:99'
        >>> normalize_range("bytes 0-99/1000")
        '0:99/1000'
    """
    value = value.strip().lower()
    for prefix in ("bytes=", "bytes "):
        if value.startswith(prefix):
            value = value[len(prefix) :]
            break
    return "".join(value.split()).replace("-", ":")


def normalize_encoding(value: str) -> str:
    return "".join(value.lower().split())


def clear_or_hashed(value: str, options: KeyOptions) -> str:
    if CLEAR_VALUE.fullmatch(value):
        return value
    return options.short_hash(value)


def playlist_identity(ctx: RequestContext) -> str:
    explicit = first_of(ctx.query_params, PLAYLIST_PARAMS)
    if explicit:
        return explicit
    directory = ctx.path.rsplit("/", 1)[0]
    return directory or "/"


def key_segments(
    ctx: RequestContext,
    options: KeyOptions,
    classification: ContentClassification,
) -> List[str]:
    """Build the tagged key segments in their fixed order."""
    headers = ctx.headers
    segments = [f"id:{options.identity_hash(f'{ctx.method} {ctx.uri}')}"]

    code = CATEGORY_CODES[classification.category]
    if classification.is_init_segment:
        code = INIT_SEGMENT_CODE
    segments.append(f"cat:{code}")

    if classification.media is not None:
        quality = classification.quality
        if quality.display is not None:
            segments.append(f"res:{clear_or_hashed(quality.display, options)}")
        if quality.bitrate is not None:
            segments.append(f"br:{quality.bitrate}")
        if classification.media.codec is not None:
            segments.append(f"codec:{clear_or_hashed(classification.media.codec, options)}")

    if classification.is_streaming:
        segment = classification.segment
        if segment is not None and segment.index is not None:
            segments.append(f"idx:{segment.index}")
        if classification.is_init_segment:
            segments.append("init:1")
        segments.append(f"pl:{options.short_hash(playlist_identity(ctx))}")

    byte_range: Optional[str] = str(headers.range) if headers.range is not None else headers.get("content-range")
    if byte_range is not None:
        segments.append(f"rng:{options.short_hash(normalize_range(byte_range))}")

    etag = headers.get("etag")
    accept = first_token(headers.accept) if headers.accept is not None else None
    language = first_token(headers.accept_language) if headers.accept_language is not None else None
    encoding = normalize_encoding(headers.accept_encoding) if headers.accept_encoding is not None else None

    hashed = (
        ("ct", headers.content_type),
        ("etag", etag.strip().strip('"') if etag is not None else None),
        ("acc", accept),
        ("enc", encoding or None),
        ("lang", language),
        ("ua", headers.user_agent),
        ("lm", headers.get("last-modified")),
        ("qs", ctx.query_string or None),
    )
    for tag, value in hashed:
        if value is not None:
            segments.append(f"{tag}:{options.short_hash(value)}")

    if headers.authorization is not None:
        segments.append(f"auth:{options.short_hash(headers.authorization)}")

    return segments


def derive_key(
    ctx: RequestContext,
    options: Optional[KeyOptions] = None,
    rules: ClassifierRules = DEFAULT_RULES,
    classification: Optional[ContentClassification] = None,
) -> str:
    """
    Derive the cache key of a request.

    The key is a pure function of the request context: it never depends on
    the clock, randomness or the environment. Header values are only ever
    included as digests. A `classification` already computed for `ctx` may
    be passed in to avoid classifying twice.
    """
    options = options if options is not None else KeyOptions()
    if classification is None:
        classification = classify_request(ctx, rules)
    segments = key_segments(ctx, options, classification)
    logger.debug(
        "Derived cache key: method=%s segments=%s",
        ctx.method,
        ",".join(segment.split(":", 1)[0] for segment in segments),
    )
    return SEPARATOR.join(segments)
