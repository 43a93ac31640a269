import re
from typing import Dict, Optional

import pytest

from reqprint import (
    DEFAULT_RULES,
    ClassifierRules,
    ContentCategory,
    ContentClassification,
    ExtensionRule,
    MediaInfo,
    PathRule,
    Quality,
    RequestContext,
    Resolution,
    SegmentInfo,
    SegmentPattern,
    classify,
    classify_request,
)
from reqprint._core._classifier import extract_extension, parse_bitrate
from reqprint._exceptions import ValidationError


def classify_url(url: str, accept: Optional[str] = None) -> ContentClassification:
    headers: Dict[str, str] = {"Accept": accept} if accept is not None else {}
    return classify_request(RequestContext.from_headers("GET", url, headers))


class TestExtension:
    @pytest.mark.parametrize(
        "path, expected",
        [
            pytest.param("/videos/movie.mp4", "mp4", id="simple"),
            pytest.param("/videos/MOVIE.MKV", "mkv", id="upper_case"),
            pytest.param("/archive.tar.gz", "gz", id="final_dot_wins"),
            pytest.param("/videos/movie", None, id="no_dot"),
            pytest.param("/static/.hidden", None, id="nothing_before_dot"),
            pytest.param("/v1.2/manifest", None, id="dot_in_directory"),
            pytest.param("/file.", None, id="trailing_dot"),
            pytest.param("/", None, id="root"),
        ],
    )
    def test_extract_extension(self, path: str, expected: Optional[str]):
        assert extract_extension(path) == expected


class TestCategories:
    def test_video_with_query_codec_and_resolution(self):
        result = classify_url("/videos/movie.mp4?codec=h265&resolution=1080p")

        assert result.category is ContentCategory.VIDEO
        assert result.extension == "mp4"
        assert result.media == MediaInfo(format="mp4", codec="h265", container="mp4")
        assert result.quality.resolution == Resolution(width=1920, height=1080)
        assert result.quality.label == "1080p"
        assert result.is_streaming is False

    def test_hls_segment(self):
        result = classify_url("/hls/stream/segment_42.ts")

        assert result.category is ContentCategory.MEDIA_SEGMENT
        assert result.is_streaming is True
        assert result.is_init_segment is False
        assert result.segment is not None
        assert result.segment.index == 42
        assert result.media is None

    @pytest.mark.parametrize(
        "path, category, streaming",
        [
            ("/a/track.mp3", ContentCategory.AUDIO, False),
            ("/a/track.flac", ContentCategory.AUDIO, False),
            ("/live/index.m3u8", ContentCategory.STREAMING_MANIFEST, True),
            ("/live/manifest.mpd", ContentCategory.STREAMING_MANIFEST, True),
            ("/live/part.m4s", ContentCategory.MEDIA_SEGMENT, True),
            ("/live/part.chk", ContentCategory.MEDIA_SEGMENT, True),
            ("/logo.png", ContentCategory.IMAGE, False),
            ("/report.pdf", ContentCategory.DOCUMENT, False),
            ("/app.js", ContentCategory.SCRIPT, False),
            ("/site.css", ContentCategory.STYLESHEET, False),
            ("/index.html", ContentCategory.HTML, False),
            ("/api/items.json", ContentCategory.DATA, False),
            ("/robots.txt", ContentCategory.DATA, False),
            ("/download.bin", ContentCategory.OTHER, False),
        ],
    )
    def test_extension_table(self, path: str, category: ContentCategory, streaming: bool):
        result = classify_url(path)

        assert result.category is category
        assert result.is_streaming is streaming

    @pytest.mark.parametrize(
        "url, category, streaming, init",
        [
            pytest.param("/video/12345", ContentCategory.VIDEO, False, False, id="video"),
            pytest.param("/media/12345", ContentCategory.VIDEO, False, False, id="media"),
            pytest.param("/movie/12345", ContentCategory.VIDEO, False, False, id="movie"),
            pytest.param("/audio/12345", ContentCategory.AUDIO, False, False, id="audio"),
            pytest.param("/music/12345", ContentCategory.AUDIO, False, False, id="music"),
            pytest.param("/stream/live", ContentCategory.STREAMING_MANIFEST, True, False, id="stream"),
            pytest.param("/dash/live", ContentCategory.STREAMING_MANIFEST, True, False, id="dash"),
            pytest.param("/live/segment/7", ContentCategory.MEDIA_SEGMENT, True, False, id="segment"),
            pytest.param("/live/fragment7", ContentCategory.MEDIA_SEGMENT, True, False, id="fragment"),
            pytest.param("/live/init", ContentCategory.MEDIA_SEGMENT, True, True, id="init_path"),
            pytest.param("/live/x?init=1", ContentCategory.MEDIA_SEGMENT, True, True, id="init_query"),
            pytest.param("/img/42", ContentCategory.IMAGE, False, False, id="image"),
            pytest.param("/api/users", ContentCategory.OTHER, False, False, id="other"),
        ],
    )
    def test_path_fallback(self, url: str, category: ContentCategory, streaming: bool, init: bool):
        result = classify_url(url)

        assert result.category is category
        assert result.is_streaming is streaming
        assert result.is_init_segment is init

    def test_extension_wins_over_path(self):
        assert classify_url("/video/poster.jpg").category is ContentCategory.IMAGE

    def test_path_fallback_is_case_insensitive(self):
        assert classify_url("/VIDEO/12345").category is ContentCategory.VIDEO

    def test_fallback_media_format(self):
        result = classify_url("/audio/12345")
        assert result.media == MediaInfo(format="audio")


class TestCodec:
    @pytest.mark.parametrize(
        "url, codec",
        [
            pytest.param("/v/movie.mp4?c=VP9", "vp9", id="short_query_parameter"),
            pytest.param("/v/movie_avc.mp4", "h264", id="avc"),
            pytest.param("/v/movie.hevc.mkv", "h265", id="hevc"),
            pytest.param("/v/movie-av1.webm", "av1", id="av1"),
            pytest.param("/v/h264/h265/movie.mp4", "h264", id="priority_order"),
            pytest.param("/v/movie.mp4", None, id="unknown"),
        ],
    )
    def test_detection(self, url: str, codec: Optional[str]):
        result = classify_url(url)

        assert result.media is not None
        assert result.media.codec == codec

    def test_not_detected_for_other_categories(self):
        assert classify_url("/h264/poster.png").media is None


class TestSegments:
    @pytest.mark.parametrize(
        "url, expected",
        [
            pytest.param("/live/seg-3.ts", SegmentInfo(index=3), id="seg"),
            pytest.param("/live/chunk_5.chk", SegmentInfo(index=5, is_chunk=True), id="chunk"),
            pytest.param("/live/frag12.m4s", SegmentInfo(index=12), id="frag"),
            pytest.param("/live/media_7.ts", SegmentInfo(index=7), id="underscore_number"),
            pytest.param("/live/720p/99.ts", SegmentInfo(index=99), id="bare_number"),
            pytest.param("/live/a.ts?segment=8", SegmentInfo(index=8), id="query_index"),
            pytest.param("/live/seq_100/a.ts", SegmentInfo(sequence=100), id="sequence_path"),
            pytest.param("/live/a.ts?_HLS_msn=51", SegmentInfo(sequence=51), id="sequence_query"),
            pytest.param("/live/a.ts?duration=6.006", SegmentInfo(duration=6.006), id="duration"),
            pytest.param("/live/a.ts?dur=-1", None, id="negative_duration"),
            pytest.param("/live/a.ts", None, id="nothing_found"),
        ],
    )
    def test_extraction(self, url: str, expected: Optional[SegmentInfo]):
        assert classify_url(url).segment == expected

    def test_path_wins_over_query(self):
        segment = classify_url("/live/segment_1.ts?segment=2").segment
        assert segment is not None
        assert segment.index == 1

    def test_not_extracted_when_not_streaming(self):
        assert classify_url("/videos/segment_1.mp4").segment is None

    def test_oversized_index_is_ignored(self):
        result = classify("/hls/segment_" + "7" * 5000 + ".ts", {})
        assert result.category is ContentCategory.MEDIA_SEGMENT
        assert result.segment is None

    def test_oversized_query_index_is_ignored(self):
        assert classify_url("/live/a.ts?segment=" + "8" * 5000).segment is None


class TestQuality:
    @pytest.mark.parametrize(
        "url, expected",
        [
            pytest.param("/v/a.mp4?res=720p", Quality(Resolution(1280, 720), label="720p"), id="res"),
            pytest.param("/v/a.mp4?quality=4K", Quality(Resolution(3840, 2160), label="4k"), id="upper_label"),
            pytest.param("/v/a.mp4?q=1280x720", Quality(Resolution(1280, 720)), id="dimensions"),
            pytest.param("/v/a.mp4?resolution=ultra", Quality(label="ultra"), id="unknown_label"),
            pytest.param("/v/a.mp4?res=540p", Quality(label="540p"), id="unknown_progressive"),
            pytest.param("/v/1920x1080/a.mp4", Quality(Resolution(1920, 1080)), id="path_dimensions"),
            pytest.param("/v/360p/a.mp4", Quality(Resolution(640, 360), label="360p"), id="path_progressive"),
            pytest.param("/v/hd/a.mp4", Quality(Resolution(1280, 720), label="hd"), id="path_label"),
            pytest.param("/v/a.mp4?bitrate=2500k", Quality(bitrate=2_500_000), id="bitrate"),
            pytest.param(
                "/v/720p/a.mp4?res=1080p&br=5000",
                Quality(Resolution(1920, 1080), bitrate=5000, label="1080p"),
                id="query_wins_over_path",
            ),
            pytest.param("/v/a.mp4", Quality(), id="nothing_found"),
        ],
    )
    def test_extraction(self, url: str, expected: Quality):
        assert classify_url(url).quality == expected

    def test_accept_quality_factor(self):
        result = classify_url("/v/a.mp4", accept="video/webm;q=0.9, video/mp4;q=0.8")
        assert result.quality == Quality(label="q=0.9")

    def test_accept_ignored_when_quality_found(self):
        result = classify_url("/v/a.mp4?res=hd", accept="video/webm;q=0.9")
        assert result.quality.label == "hd"

    def test_display(self):
        assert Quality(Resolution(1280, 720)).display == "1280x720"
        assert Quality(Resolution(1280, 720), label="hd").display == "hd"
        assert Quality().display is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("800", 800),
            ("2500k", 2_500_000),
            ("5M", 5_000_000),
            ("128kbps", 128_000),
            ("fast", None),
            ("", None),
            ("9" * 5000, None),
            ("9" * 5000 + "k", None),
        ],
    )
    def test_parse_bitrate(self, value: str, expected: Optional[int]):
        assert parse_bitrate(value) == expected


class TestRules:
    def test_custom_extension_rule(self):
        rules = ClassifierRules(
            extensions=(ExtensionRule(("cmfv",), ContentCategory.MEDIA_SEGMENT, is_streaming=True),),
            paths=DEFAULT_RULES.paths,
            codecs=DEFAULT_RULES.codecs,
            segment_patterns=DEFAULT_RULES.segment_patterns,
            quality_labels=DEFAULT_RULES.quality_labels,
        )

        result = classify("/live/part-4.cmfv", {}, rules=rules)
        assert result.category is ContentCategory.MEDIA_SEGMENT
        assert result.segment is None

    def test_custom_path_and_segment_rules(self):
        rules = ClassifierRules(
            extensions=(),
            paths=(PathRule(("/clips/",), ContentCategory.MEDIA_SEGMENT, is_streaming=True),),
            codecs=(),
            segment_patterns=(SegmentPattern(re.compile(r"part(\d+)"), "index"),),
            quality_labels={},
        )

        result = classify("/clips/part9", {}, rules=rules)
        assert result.category is ContentCategory.MEDIA_SEGMENT
        assert result.segment == SegmentInfo(index=9)

    def test_classification_is_deterministic(self):
        assert classify_url("/hls/stream/segment_42.ts") == classify_url("/hls/stream/segment_42.ts")


class TestInvariants:
    def test_init_segment_must_be_streaming(self):
        with pytest.raises(ValidationError):
            ContentClassification(category=ContentCategory.MEDIA_SEGMENT, is_init_segment=True)

    def test_media_only_for_video_and_audio(self):
        with pytest.raises(ValidationError):
            ContentClassification(category=ContentCategory.IMAGE, media=MediaInfo(format="png"))
