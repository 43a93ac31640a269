from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass

from reqprint._core._classifier import DEFAULT_RULES, ClassifierRules, classify_request
from reqprint._core._keygen import KeyOptions, derive_key
from reqprint._core.models import ContentClassification, RequestContext

__all__ = ("Fingerprint", "FingerprintMiddleware", "context_from_scope", "STATE_KEY")

# Configure logger for this module
logger = logging.getLogger(__name__)

STATE_KEY = "reqprint"


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    raw_path: bytes
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Receive = t.Callable[[], t.Awaitable[dict[str, t.Any]]]
_Send = t.Callable[[dict[str, t.Any]], t.Awaitable[None]]
_ASGIApp = t.Callable[[_Scope, _Receive, _Send], t.Awaitable[None]]


@dataclass(frozen=True)
class Fingerprint:
    context: RequestContext
    classification: ContentClassification
    cache_key: str


def context_from_scope(scope: _Scope) -> RequestContext:
    """
    Build a RequestContext from an ASGI HTTP scope.

    `raw_path` is preferred over `path` so percent-encoding is kept as the
    client sent it.
    """
    raw_path = scope.get("raw_path")
    path = raw_path.decode("latin1") if raw_path else scope.get("path", "/")
    query_string = scope.get("query_string", b"").decode("latin1")
    uri = f"{path}?{query_string}" if query_string else path

    client = scope.get("client")
    return RequestContext.from_headers(
        method=scope.get("method", "GET"),
        uri=uri,
        headers=scope.get("headers", []),
        client_addr=(client[0], client[1]) if client else None,
    )


class FingerprintMiddleware:
    """
    ASGI middleware that fingerprints every HTTP request before the app runs.

    The request context, its classification and its cache key are stored in
    `scope["state"]["reqprint"]` as a `Fingerprint`, so downstream caching
    code does not need to parse the headers again.

    Args:
        app: The ASGI application to wrap.
        key_options: Options for cache key derivation. Defaults to KeyOptions().
        rules: Classification rules. Defaults to DEFAULT_RULES.

    Example:
        ```python
        from reqprint.asgi import FingerprintMiddleware

        app = FingerprintMiddleware(app=my_asgi_app)
        ```
    """

    def __init__(
        self,
        app: _ASGIApp,
        key_options: KeyOptions | None = None,
        rules: ClassifierRules = DEFAULT_RULES,
    ) -> None:
        self.app = app
        self.key_options = key_options if key_options is not None else KeyOptions()
        self.rules = rules

        logger.info(
            "Initialized FingerprintMiddleware with full_width=%s",
            self.key_options.full_width,
        )

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        # Only handle HTTP requests
        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        context = context_from_scope(scope)
        classification = classify_request(context, self.rules)
        fingerprint = Fingerprint(
            context=context,
            classification=classification,
            cache_key=derive_key(context, self.key_options, self.rules, classification),
        )
        scope.setdefault("state", {})[STATE_KEY] = fingerprint

        logger.debug(
            "Fingerprinted HTTP request: method=%s path=%s category=%s",
            context.method,
            context.path,
            fingerprint.classification.category.value,
        )
        await self.app(scope, receive, send)
