from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from reqprint._core.models import (
    MEDIA_CATEGORIES,
    ContentCategory,
    ContentClassification,
    MediaInfo,
    Quality,
    RequestContext,
    Resolution,
    SegmentInfo,
)
from reqprint._utils import first_of, parse_unsigned

__all__ = (
    "ExtensionRule",
    "PathRule",
    "CodecRule",
    "SegmentPattern",
    "ClassifierRules",
    "DEFAULT_RULES",
    "classify",
    "classify_request",
    "extract_extension",
)

logger = logging.getLogger("reqprint.core.classifier")

CODEC_PARAMS = ("codec", "c")
SEGMENT_INDEX_PARAMS = ("segment", "seg", "index")
SEGMENT_SEQUENCE_PARAMS = ("sequence", "seq", "msn", "_hls_msn")
DURATION_PARAMS = ("duration", "dur")
QUALITY_PARAMS = ("resolution", "res", "quality", "q")
BITRATE_PARAMS = ("bitrate", "br", "rate")

WIDTH_X_HEIGHT = re.compile(r"(\d{2,5})x(\d{2,5})")
PATH_WIDTH_X_HEIGHT = re.compile(r"(?<!\d)(\d{3,4})x(\d{3,4})(?!\d)")
PATH_PROGRESSIVE = re.compile(r"(?<![a-z0-9])(\d{3,4}p)(?![a-z0-9])")
PATH_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
BITRATE = re.compile(r"(\d{1,20})\s*([km]?)(?:bps)?")
BITRATE_MULTIPLIERS = {"": 1, "k": 1_000, "m": 1_000_000}


@dataclass(frozen=True)
class ExtensionRule:
    extensions: Tuple[str, ...]
    category: ContentCategory
    media_format: Optional[str] = None
    container: Optional[str] = None
    is_streaming: bool = False
    is_init_segment: bool = False


@dataclass(frozen=True)
class PathRule:
    """
    Fallback rule matched against the lower-cased path.

    The rule applies when any of `patterns` occurs in the path, or when the
    `query` name/value pair is present in the query parameters.
    """

    patterns: Tuple[str, ...]
    category: ContentCategory
    is_streaming: bool = False
    is_init_segment: bool = False
    query: Optional[Tuple[str, str]] = None

    def matches(self, path: str, query_params: Mapping[str, str]) -> bool:
        if any(pattern in path for pattern in self.patterns):
            return True
        if self.query is not None:
            name, value = self.query
            return query_params.get(name) == value
        return False


@dataclass(frozen=True)
class CodecRule:
    tokens: Tuple[str, ...]
    codec: str


@dataclass(frozen=True)
class SegmentPattern:
    pattern: re.Pattern[str]
    field: str  # "index" or "sequence"

    def extract(self, path: str) -> Optional[int]:
        match = self.pattern.search(path)
        if match is None:
            return None
        return parse_unsigned(match.group(1))


@dataclass(frozen=True)
class ClassifierRules:
    extensions: Tuple[ExtensionRule, ...]
    paths: Tuple[PathRule, ...]
    codecs: Tuple[CodecRule, ...]
    segment_patterns: Tuple[SegmentPattern, ...]
    quality_labels: Mapping[str, Resolution]

    def find_extension_rule(self, extension: str) -> Optional[ExtensionRule]:
        for rule in self.extensions:
            if extension in rule.extensions:
                return rule
        return None


DEFAULT_EXTENSION_RULES = (
    # Video containers
    ExtensionRule(("mp4", "m4v"), ContentCategory.VIDEO, "mp4", "mp4"),
    ExtensionRule(("mkv",), ContentCategory.VIDEO, "mkv", "matroska"),
    ExtensionRule(("webm",), ContentCategory.VIDEO, "webm", "webm"),
    ExtensionRule(("mov",), ContentCategory.VIDEO, "mov", "quicktime"),
    ExtensionRule(("avi",), ContentCategory.VIDEO, "avi", "riff"),
    ExtensionRule(("flv",), ContentCategory.VIDEO, "flv", "flv"),
    ExtensionRule(("wmv",), ContentCategory.VIDEO, "wmv", "asf"),
    ExtensionRule(("mpg", "mpeg"), ContentCategory.VIDEO, "mpeg", "mpeg-ps"),
    ExtensionRule(("3gp",), ContentCategory.VIDEO, "3gp", "3gp"),
    # Audio
    ExtensionRule(("mp3",), ContentCategory.AUDIO, "mp3"),
    ExtensionRule(("aac",), ContentCategory.AUDIO, "aac", "adts"),
    ExtensionRule(("m4a",), ContentCategory.AUDIO, "m4a", "mp4"),
    ExtensionRule(("ogg", "oga"), ContentCategory.AUDIO, "ogg", "ogg"),
    ExtensionRule(("opus",), ContentCategory.AUDIO, "opus", "ogg"),
    ExtensionRule(("flac",), ContentCategory.AUDIO, "flac", "flac"),
    ExtensionRule(("wav",), ContentCategory.AUDIO, "wav", "riff"),
    # Streaming
    ExtensionRule(("m3u8", "m3u"), ContentCategory.STREAMING_MANIFEST, is_streaming=True),
    ExtensionRule(("mpd",), ContentCategory.STREAMING_MANIFEST, is_streaming=True),
    ExtensionRule(("ts", "m4s", "chk"), ContentCategory.MEDIA_SEGMENT, is_streaming=True),
    # Static assets
    ExtensionRule(
        ("jpg", "jpeg", "png", "gif", "webp", "avif", "svg", "ico", "bmp", "tif", "tiff"),
        ContentCategory.IMAGE,
    ),
    ExtensionRule(
        ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "odt", "rtf", "epub"),
        ContentCategory.DOCUMENT,
    ),
    ExtensionRule(("js", "mjs"), ContentCategory.SCRIPT),
    ExtensionRule(("css",), ContentCategory.STYLESHEET),
    ExtensionRule(("html", "htm"), ContentCategory.HTML),
    ExtensionRule(("json", "xml", "txt", "csv"), ContentCategory.DATA),
)

DEFAULT_PATH_RULES = (
    PathRule(("/video/", "/media/", "/movie/"), ContentCategory.VIDEO),
    PathRule(("/audio/", "/music/"), ContentCategory.AUDIO),
    PathRule(("/stream/", "/hls/", "/dash/"), ContentCategory.STREAMING_MANIFEST, is_streaming=True),
    PathRule(("/segment", "/chunk", "/fragment"), ContentCategory.MEDIA_SEGMENT, is_streaming=True),
    PathRule(
        ("/init",),
        ContentCategory.MEDIA_SEGMENT,
        is_streaming=True,
        is_init_segment=True,
        query=("init", "1"),
    ),
    PathRule(("/image/", "/img/"), ContentCategory.IMAGE),
)

DEFAULT_CODEC_RULES = (
    CodecRule(("h264", "avc"), "h264"),
    CodecRule(("h265", "hevc"), "h265"),
    CodecRule(("vp9",), "vp9"),
    CodecRule(("av1",), "av1"),
    CodecRule(("aac",), "aac"),
    CodecRule(("mp3",), "mp3"),
)

DEFAULT_SEGMENT_PATTERNS = (
    SegmentPattern(re.compile(r"segment[_-]?(\d{1,20})(?!\d)"), "index"),
    SegmentPattern(re.compile(r"seg[_-]?(\d{1,20})(?!\d)"), "index"),
    SegmentPattern(re.compile(r"chunk[_-]?(\d{1,20})(?!\d)"), "index"),
    SegmentPattern(re.compile(r"frag(?:ment)?[_-]?(\d{1,20})(?!\d)"), "index"),
    SegmentPattern(re.compile(r"[_-](\d{1,20})\.(?:ts|m4s|chk|aac|mp4)$"), "index"),
    SegmentPattern(re.compile(r"/(\d{1,20})\.(?:ts|m4s|chk)$"), "index"),
    SegmentPattern(re.compile(r"seq(?:uence)?[_-]?(\d{1,20})(?!\d)"), "sequence"),
    SegmentPattern(re.compile(r"msn[_-]?(\d{1,20})(?!\d)"), "sequence"),
)

DEFAULT_QUALITY_LABELS: Mapping[str, Resolution] = {
    "4k": Resolution(3840, 2160),
    "uhd": Resolution(3840, 2160),
    "2k": Resolution(2560, 1440),
    "1080p": Resolution(1920, 1080),
    "fullhd": Resolution(1920, 1080),
    "720p": Resolution(1280, 720),
    "hd": Resolution(1280, 720),
    "480p": Resolution(854, 480),
    "sd": Resolution(640, 480),
    "360p": Resolution(640, 360),
    "240p": Resolution(426, 240),
    "144p": Resolution(256, 144),
}

DEFAULT_RULES = ClassifierRules(
    extensions=DEFAULT_EXTENSION_RULES,
    paths=DEFAULT_PATH_RULES,
    codecs=DEFAULT_CODEC_RULES,
    segment_patterns=DEFAULT_SEGMENT_PATTERNS,
    quality_labels=DEFAULT_QUALITY_LABELS,
)


def extract_extension(path: str) -> Optional[str]:
    """
    Return the lower-cased extension of the last path segment.

    Examples:
        >>> extract_extension("/videos/movie.MP4")
        'mp4'
        >>> extract_extension("/static/.hidden") is None
        True
        >>> extract_extension("/v1.2/manifest") is None
        True
    """
    name = path.rsplit("/", 1)[-1]
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem or not extension:
        return None
    return extension.lower()


def detect_codec(lowered_path: str, query_params: Mapping[str, str], rules: ClassifierRules) -> Optional[str]:
    explicit = first_of(query_params, CODEC_PARAMS)
    if explicit:
        return explicit.strip().lower()

    for rule in rules.codecs:
        if any(token in lowered_path for token in rule.tokens):
            return rule.codec
    return None


def _parse_duration(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        duration = float(value)
    except ValueError:
        return None
    if not math.isfinite(duration) or duration < 0:
        return None
    return duration


def extract_segment(
    lowered_path: str,
    extension: Optional[str],
    query_params: Mapping[str, str],
    rules: ClassifierRules,
) -> Optional[SegmentInfo]:
    found = {}
    for segment_pattern in rules.segment_patterns:
        if segment_pattern.field in found:
            continue
        value = segment_pattern.extract(lowered_path)
        if value is not None:
            found[segment_pattern.field] = value

    index = found.get("index")
    if index is None:
        raw = first_of(query_params, SEGMENT_INDEX_PARAMS)
        index = parse_unsigned(raw) if raw is not None else None

    sequence = found.get("sequence")
    if sequence is None:
        raw = first_of(query_params, SEGMENT_SEQUENCE_PARAMS)
        sequence = parse_unsigned(raw) if raw is not None else None

    is_chunk = extension == "chk" or "chunk" in lowered_path
    duration = _parse_duration(first_of(query_params, DURATION_PARAMS))

    if index is None and sequence is None and duration is None and not is_chunk:
        return None
    return SegmentInfo(index=index, sequence=sequence, is_chunk=is_chunk, duration=duration)


def parse_quality_value(value: str, rules: ClassifierRules) -> Quality:
    """
    Interpret an explicit quality value such as `1280x720`, `1080p` or `hd`.

    Unknown labels are kept as text without dimensions.
    """
    value = value.strip().lower()
    dimensions = WIDTH_X_HEIGHT.fullmatch(value)
    if dimensions is not None:
        return Quality(resolution=Resolution(int(dimensions.group(1)), int(dimensions.group(2))))
    if value in rules.quality_labels:
        return Quality(resolution=rules.quality_labels[value], label=value)
    return Quality(label=value)


def quality_from_path(lowered_path: str, rules: ClassifierRules) -> Optional[Quality]:
    dimensions = PATH_WIDTH_X_HEIGHT.search(lowered_path)
    if dimensions is not None:
        return Quality(resolution=Resolution(int(dimensions.group(1)), int(dimensions.group(2))))

    progressive = PATH_PROGRESSIVE.search(lowered_path)
    if progressive is not None:
        return parse_quality_value(progressive.group(1), rules)

    for token in PATH_TOKEN_SPLIT.split(lowered_path):
        if token in rules.quality_labels:
            return parse_quality_value(token, rules)
    return None


def quality_from_accept(accept: str) -> Optional[str]:
    for item in accept.split(","):
        for param in item.split(";")[1:]:
            param = param.strip()
            if param.lower().startswith("q="):
                return f"q={param[2:].strip()}"
    return None


def parse_bitrate(value: Optional[str]) -> Optional[int]:
    """
    Parse a bitrate in bits per second; `2500k` and `5M` are accepted.

    Examples:
        >>> parse_bitrate("2500k")
        2500000
        >>> parse_bitrate("fast") is None
        True
    """
    if value is None:
        return None
    match = BITRATE.fullmatch(value.strip().lower())
    if match is None:
        return None
    amount = parse_unsigned(match.group(1))
    if amount is None:
        return None
    return amount * BITRATE_MULTIPLIERS[match.group(2)]


def extract_quality(
    lowered_path: str,
    query_params: Mapping[str, str],
    accept: Optional[str],
    rules: ClassifierRules,
) -> Quality:
    quality: Optional[Quality] = None

    explicit = first_of(query_params, QUALITY_PARAMS)
    if explicit is not None and explicit.strip():
        quality = parse_quality_value(explicit, rules)
    else:
        quality = quality_from_path(lowered_path, rules)

    if quality is None and accept is not None:
        label = quality_from_accept(accept)
        if label is not None:
            quality = Quality(label=label)

    bitrate = parse_bitrate(first_of(query_params, BITRATE_PARAMS))
    if quality is None:
        return Quality(bitrate=bitrate)
    return Quality(resolution=quality.resolution, bitrate=bitrate, label=quality.label)


def classify(
    path: str,
    query_params: Mapping[str, str],
    accept: Optional[str] = None,
    rules: ClassifierRules = DEFAULT_RULES,
) -> ContentClassification:
    """
    Classify a resource by its path and query parameters.

    The extension table is consulted first and the path rules only when the
    extension is unknown. Codec, segment and quality details are filled in
    afterwards. `query_params` is expected to have lower-cased names, as
    produced by `RequestContext.query_params`.
    """
    lowered_path = path.lower()
    extension = extract_extension(path)

    category = ContentCategory.OTHER
    media_format: Optional[str] = None
    container: Optional[str] = None
    is_streaming = False
    is_init_segment = False

    extension_rule = rules.find_extension_rule(extension) if extension is not None else None
    if extension_rule is not None:
        category = extension_rule.category
        media_format = extension_rule.media_format
        container = extension_rule.container
        is_streaming = extension_rule.is_streaming
        is_init_segment = extension_rule.is_init_segment
    else:
        for path_rule in rules.paths:
            if path_rule.matches(lowered_path, query_params):
                category = path_rule.category
                is_streaming = path_rule.is_streaming
                is_init_segment = path_rule.is_init_segment
                break

    media: Optional[MediaInfo] = None
    if category in MEDIA_CATEGORIES:
        media = MediaInfo(
            format=media_format or category.value,
            codec=detect_codec(lowered_path, query_params, rules),
            container=container,
        )

    segment = extract_segment(lowered_path, extension, query_params, rules) if is_streaming else None
    quality = extract_quality(lowered_path, query_params, accept, rules)

    classification = ContentClassification(
        category=category,
        media=media,
        extension=extension,
        is_streaming=is_streaming,
        is_init_segment=is_init_segment,
        segment=segment,
        quality=quality,
    )
    logger.debug(
        "Classified path=%s category=%s streaming=%s init=%s",
        path,
        category.value,
        is_streaming,
        is_init_segment,
    )
    return classification


def classify_request(ctx: RequestContext, rules: ClassifierRules = DEFAULT_RULES) -> ContentClassification:
    return classify(ctx.path, ctx.query_params, accept=ctx.headers.accept, rules=rules)
