from datetime import datetime, timezone

from reqprint import ConditionalOutcome, RequestContext, derive_key, evaluate_conditions

ctx = RequestContext.from_headers(
    "GET",
    "/hls/stream/segment_42.ts",
    {
        "Range": "bytes=0-1023",
        "If-Range": '"v7"',
        "Accept-Language": "en-US,en;q=0.9",
    },
)

# The storage layer knows the current validators of the stored representation.
outcome = evaluate_conditions(ctx, last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc), etag='"v7"')
assert outcome is ConditionalOutcome.RANGE_USABLE

print(derive_key(ctx))
