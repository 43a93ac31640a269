from dataclasses import fields
from datetime import datetime, timezone

from reqprint import Headers, RangeHeader, RangeSpec, extract_headers, parse_etag_list
from reqprint._core._headers import RECOGNIZED_HEADERS


def test_recognized_headers_are_typed():
    headers = extract_headers(
        {
            "Host": "example.com",
            "User-Agent": " curl/8.0 ",
            "Accept": "video/mp4",
            "Accept-Encoding": "gzip, br",
            "Accept-Language": "en-US,en;q=0.9",
            "Connection": "keep-alive",
            "Cache-Control": "no-cache",
            "Cookie": "session=1",
            "Authorization": "Bearer token",
            "Content-Type": "application/json",
            "Content-Length": "42",
            "Referer": "https://example.com/",
            "Origin": "https://example.com",
        }
    )

    assert headers.host == "example.com"
    assert headers.user_agent == "curl/8.0"
    assert headers.accept == "video/mp4"
    assert headers.accept_encoding == "gzip, br"
    assert headers.accept_language == "en-US,en;q=0.9"
    assert headers.connection == "keep-alive"
    assert headers.cache_control == "no-cache"
    assert headers.cookie == "session=1"
    assert headers.authorization == "Bearer token"
    assert headers.content_type == "application/json"
    assert headers.content_length == 42
    assert headers.referer == "https://example.com/"
    assert headers.origin == "https://example.com"
    assert headers.other == {}


def test_oversized_numbers_are_absent():
    headers = extract_headers({"Content-Length": "1" * 5000, "Range": "bytes=" + "9" * 5000 + "-"})

    assert headers.content_length is None
    assert headers.range is None


def test_conditional_headers_are_parsed():
    headers = extract_headers(
        [
            ("range", "bytes=0-99"),
            ("if-range", '"v1"'),
            ("if-modified-since", "Sun, 06 Nov 1994 08:49:37 GMT"),
            ("if-unmodified-since", "Sunday, 06-Nov-94 08:49:37 GMT"),
            ("if-none-match", '"a", "b"'),
            ("if-match", "*"),
        ]
    )

    expected_date = datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)
    assert headers.range == RangeHeader(unit="bytes", ranges=(RangeSpec(0, 99),))
    assert headers.if_range is not None and headers.if_range.etag == "v1"
    assert headers.if_modified_since == expected_date
    assert headers.if_unmodified_since == expected_date
    assert headers.if_none_match == ("a", "b")
    assert headers.if_match == ("*",)


def test_names_are_case_insensitive():
    headers = extract_headers({"CONTENT-TYPE": "text/html", "X-Debug-Id": "1"})

    assert headers.content_type == "text/html"
    assert headers.other == {"x-debug-id": "1"}
    assert headers.get("X-DEBUG-ID") == "1"


def test_residual_headers_are_disjoint_from_typed_fields():
    raw = [(name, "value") for name in RECOGNIZED_HEADERS] + [("X-Custom", "1"), ("ETag", '"abc"')]
    headers = extract_headers(raw)

    assert set(headers.other) == {"x-custom", "etag"}
    assert not set(headers.other) & set(RECOGNIZED_HEADERS)


def test_malformed_values_are_absent_not_errors():
    headers = extract_headers(
        {
            "Content-Length": "-1",
            "If-Modified-Since": "yesterday",
            "Range": "bytes=abc",
            "If-None-Match": '""',
        }
    )

    assert headers.content_length is None
    assert headers.if_modified_since is None
    assert headers.range is None
    assert headers.if_none_match is None
    # Recognized headers never leak into the residual mapping.
    assert headers.other == {}


def test_bytes_headers():
    headers = extract_headers([(b"Host", b"example.com"), (b"X-Trace", b"\xff\xfe")])

    assert headers.host == "example.com"
    assert headers.other == {"x-trace": "\xff\xfe"}


def test_undecodable_recognized_header_is_absent():
    headers = extract_headers([(b"User-Agent", b"\xff\xfe")])

    assert headers.user_agent is None
    assert headers.other == {}


def test_repeated_headers():
    headers = extract_headers(
        [
            ("Accept", "text/html"),
            ("Accept", "application/json"),
            ("X-Forwarded-For", "10.0.0.1"),
            ("X-Forwarded-For", "10.0.0.2"),
        ]
    )

    assert headers.accept == "text/html"
    assert headers.other == {"x-forwarded-for": "10.0.0.1, 10.0.0.2"}


def test_repr_masks_credentials():
    headers = extract_headers({"Cookie": "session=secret", "Authorization": "Bearer secret", "X-A": "1"})

    text = repr(headers)
    assert "secret" not in text
    assert "cookie='[PRESENT]'" in text
    assert "authorization='[PRESENT]'" in text
    assert "other_headers_count=1" in text


def test_default_headers_are_empty():
    headers = Headers()

    assert all(getattr(headers, item.name) is None for item in fields(headers) if item.name != "other")
    assert headers.other == {}


class TestEtagList:
    def test_single(self):
        assert parse_etag_list('"abc"') == ("abc",)

    def test_multiple(self):
        assert parse_etag_list('"abc", "def" ,ghi') == ("abc", "def", "ghi")

    def test_wildcard(self):
        assert parse_etag_list("*") == ("*",)

    def test_weak_tags_are_not_distinguished(self):
        assert parse_etag_list('W/"abc"') == ('W/"abc',)

    def test_empty(self):
        assert parse_etag_list("") is None
        assert parse_etag_list(' , "" ') is None
