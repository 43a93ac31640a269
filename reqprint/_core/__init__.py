from reqprint._core._classifier import (
    DEFAULT_RULES as DEFAULT_RULES,
    ClassifierRules as ClassifierRules,
    CodecRule as CodecRule,
    ExtensionRule as ExtensionRule,
    PathRule as PathRule,
    SegmentPattern as SegmentPattern,
    classify as classify,
    classify_request as classify_request,
)
from reqprint._core._conditional import (
    ConditionalOutcome as ConditionalOutcome,
    can_use_range as can_use_range,
    evaluate_conditions as evaluate_conditions,
    should_return_not_modified as should_return_not_modified,
    should_return_precondition_failed as should_return_precondition_failed,
)
from reqprint._core._dates import format_http_date as format_http_date, parse_http_date as parse_http_date
from reqprint._core._headers import (
    Headers as Headers,
    extract_headers as extract_headers,
    parse_etag_list as parse_etag_list,
)
from reqprint._core._keygen import KeyOptions as KeyOptions, derive_key as derive_key
from reqprint._core._ranges import (
    IfRange as IfRange,
    RangeHeader as RangeHeader,
    RangeSpec as RangeSpec,
    parse_if_range as parse_if_range,
    parse_range_header as parse_range_header,
)
from reqprint._core.models import (
    ContentCategory as ContentCategory,
    ContentClassification as ContentClassification,
    MediaInfo as MediaInfo,
    Quality as Quality,
    RequestContext as RequestContext,
    Resolution as Resolution,
    SegmentInfo as SegmentInfo,
)

__all__ = (
    ## Context
    "RequestContext",
    "Headers",
    "extract_headers",
    ## Validators
    "parse_http_date",
    "format_http_date",
    "parse_etag_list",
    ## Ranges
    "RangeSpec",
    "RangeHeader",
    "IfRange",
    "parse_range_header",
    "parse_if_range",
    ## Conditional requests
    "ConditionalOutcome",
    "should_return_not_modified",
    "should_return_precondition_failed",
    "can_use_range",
    "evaluate_conditions",
    ## Classification
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
    ## Keys
    "KeyOptions",
    "derive_key",
)
