from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple
from urllib.parse import urlsplit

from reqprint._core._headers import Headers, RawHeaders, extract_headers
from reqprint._exceptions import ValidationError
from reqprint._utils import parse_query

ClientAddress = Tuple[str, int]


@dataclass(frozen=True)
class RequestContext:
    method: str
    uri: str
    headers: Headers = field(default_factory=Headers)
    client_addr: Optional[ClientAddress] = None

    @classmethod
    def from_headers(
        cls,
        method: str,
        uri: str,
        headers: RawHeaders,
        client_addr: Optional[ClientAddress] = None,
    ) -> "RequestContext":
        return cls(
            method=method.upper(),
            uri=uri,
            headers=extract_headers(headers),
            client_addr=client_addr,
        )

    @property
    def path(self) -> str:
        return urlsplit(self.uri).path or "/"

    @property
    def query_string(self) -> str:
        return urlsplit(self.uri).query

    @property
    def query_params(self) -> Mapping[str, str]:
        return parse_query(self.query_string)


class ContentCategory(enum.Enum):
    VIDEO = "video"
    AUDIO = "audio"
    STREAMING_MANIFEST = "streaming_manifest"
    MEDIA_SEGMENT = "media_segment"
    IMAGE = "image"
    DOCUMENT = "document"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    HTML = "html"
    DATA = "data"
    OTHER = "other"


MEDIA_CATEGORIES = (ContentCategory.VIDEO, ContentCategory.AUDIO)


@dataclass(frozen=True)
class MediaInfo:
    format: str
    codec: Optional[str] = None
    container: Optional[str] = None


@dataclass(frozen=True)
class SegmentInfo:
    index: Optional[int] = None
    sequence: Optional[int] = None
    is_chunk: bool = False
    duration: Optional[float] = None


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class Quality:
    resolution: Optional[Resolution] = None
    bitrate: Optional[int] = None
    label: Optional[str] = None

    @property
    def display(self) -> Optional[str]:
        """The label when there is one, otherwise `WIDTHxHEIGHT`."""
        if self.label is not None:
            return self.label
        if self.resolution is not None:
            return str(self.resolution)
        return None


@dataclass(frozen=True)
class ContentClassification:
    category: ContentCategory
    media: Optional[MediaInfo] = None
    extension: Optional[str] = None
    is_streaming: bool = False
    is_init_segment: bool = False
    segment: Optional[SegmentInfo] = None
    quality: Quality = field(default_factory=Quality)

    def __post_init__(self) -> None:
        if self.is_init_segment and not self.is_streaming:
            raise ValidationError("An init segment is always a streaming resource.")
        if self.media is not None and self.category not in MEDIA_CATEGORIES:
            raise ValidationError(f"Media details are only allowed for video and audio, not {self.category.value}.")
