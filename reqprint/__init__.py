from reqprint._core import (
    DEFAULT_RULES as DEFAULT_RULES,
    ClassifierRules as ClassifierRules,
    CodecRule as CodecRule,
    ConditionalOutcome as ConditionalOutcome,
    ContentCategory as ContentCategory,
    ContentClassification as ContentClassification,
    ExtensionRule as ExtensionRule,
    Headers as Headers,
    IfRange as IfRange,
    KeyOptions as KeyOptions,
    MediaInfo as MediaInfo,
    PathRule as PathRule,
    Quality as Quality,
    RangeHeader as RangeHeader,
    RangeSpec as RangeSpec,
    RequestContext as RequestContext,
    Resolution as Resolution,
    SegmentInfo as SegmentInfo,
    SegmentPattern as SegmentPattern,
    can_use_range as can_use_range,
    classify as classify,
    classify_request as classify_request,
    derive_key as derive_key,
    evaluate_conditions as evaluate_conditions,
    extract_headers as extract_headers,
    format_http_date as format_http_date,
    parse_etag_list as parse_etag_list,
    parse_http_date as parse_http_date,
    parse_if_range as parse_if_range,
    parse_range_header as parse_range_header,
    should_return_not_modified as should_return_not_modified,
    should_return_precondition_failed as should_return_precondition_failed,
)
from reqprint._exceptions import (
    ParseError as ParseError,
    ReqprintError as ReqprintError,
    ValidationError as ValidationError,
)

__version__ = "0.1.0"

__all__ = (
    # Context
    "RequestContext",
    "Headers",
    "extract_headers",
    # Validators
    "parse_http_date",
    "format_http_date",
    "parse_etag_list",
    "RangeSpec",
    "RangeHeader",
    "IfRange",
    "parse_range_header",
    "parse_if_range",
    # Conditional requests
    "ConditionalOutcome",
    "should_return_not_modified",
    "should_return_precondition_failed",
    "can_use_range",
    "evaluate_conditions",
    # Classification
    "ContentCategory",
    "ContentClassification",
    "MediaInfo",
    "SegmentInfo",
    "Quality",
    "Resolution",
    "ClassifierRules",
    "ExtensionRule",
    "PathRule",
    "CodecRule",
    "SegmentPattern",
    "DEFAULT_RULES",
    "classify",
    "classify_request",
    # Keys
    "KeyOptions",
    "derive_key",
    # Errors
    "ReqprintError",
    "ParseError",
    "ValidationError",
)
