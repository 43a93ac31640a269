from __future__ import annotations

import logging
from typing import Optional

import httpx

from reqprint._core._keygen import KeyOptions, derive_key
from reqprint._core.models import ClientAddress, RequestContext

__all__ = ("context_from_httpx", "fingerprint_hook", "CACHE_KEY_EXTENSION")

logger = logging.getLogger("reqprint.httpx")

CACHE_KEY_EXTENSION = "reqprint_cache_key"


def context_from_httpx(
    request: httpx.Request,
    client_addr: Optional[ClientAddress] = None,
) -> RequestContext:
    """
    Convert an httpx.Request to a RequestContext.

    The URI is the origin-form target (path and query) exactly as it goes on
    the wire.
    """
    return RequestContext.from_headers(
        method=request.method,
        uri=request.url.raw_path.decode("ascii"),
        headers=request.headers.multi_items(),
        client_addr=client_addr,
    )


def fingerprint_hook(request: httpx.Request, options: Optional[KeyOptions] = None) -> None:
    """
    httpx request event hook storing the cache key in the request extensions.

    Example:
        ```python
        client = httpx.Client(event_hooks={"request": [fingerprint_hook]})
        response = client.get("https://example.com/videos/movie.mp4")
        response.request.extensions["reqprint_cache_key"]
        ```
    """
    key = derive_key(context_from_httpx(request), options)
    request.extensions[CACHE_KEY_EXTENSION] = key
    logger.debug("Fingerprinted httpx request: method=%s url=%s", request.method, request.url.path)
