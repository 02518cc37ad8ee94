"""
Forwarding for the legacy quotation URLs.

Old clients call ``/quotation/{id}`` and ``/quotation/{id}/action``; those
requests are replayed against the client API on the same origin with the
method, headers, raw body and (for GET) query string unchanged, and the
upstream response is handed back as-is.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlsplit

import requests

from app.core.config import settings
from app.core.exceptions import UpstreamFetchFailed
from app.core.logging import get_logger

logger = get_logger(__name__)

FORWARDED_METHODS = ("GET", "POST", "PUT")

# requests decodes bodies and manages framing itself, so these can no
# longer describe the bytes handed back to the caller
UNFORWARDABLE_RESPONSE_HEADERS = {"content-encoding", "content-length", "transfer-encoding", "connection"}


@dataclass
class ForwardedResponse:
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)


def canonical_target(origin: str, quotation_id: str, method: str, query: str = "") -> str:
    """
    Client API URL a legacy request maps to.

    GET reads the quotation and keeps the query string; POST and PUT go to
    the action endpoint.
    """
    base = f"{origin}{settings.API_PREFIX}/client/quotation/{quotation_id}"
    if method == "GET":
        return f"{base}?{query}" if query else base
    return f"{base}/action"


def origin_of(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


def forward_request(
    method: str,
    target_url: str,
    headers: Mapping[str, str],
    body: Optional[bytes] = None,
    timeout: Optional[float] = None,
) -> ForwardedResponse:
    """
    Replay one request against ``target_url``.

    Args:
        method: GET, POST or PUT
        target_url: Absolute URL to call
        headers: Original request headers, sent verbatim
        body: Original raw body, sent verbatim (ignored for GET)
        timeout: Seconds before giving up; defaults to LEGACY_FORWARD_TIMEOUT_SECONDS

    Returns:
        Upstream status, body and headers

    Raises:
        ValueError: For methods other than GET, POST and PUT
        UpstreamFetchFailed: If the target could not be reached
    """
    method = method.upper()
    if method not in FORWARDED_METHODS:
        raise ValueError(f"Unsupported method for legacy forwarding: {method}")

    if timeout is None:
        timeout = settings.LEGACY_FORWARD_TIMEOUT_SECONDS

    try:
        upstream = requests.request(
            method,
            target_url,
            headers=dict(headers),
            data=body if method != "GET" else None,
            timeout=timeout,
            allow_redirects=False,
        )
    except requests.RequestException as e:
        logger.error(f"Legacy forward {method} {target_url} failed: {e}")
        raise UpstreamFetchFailed(target_url, e) from e

    logger.info(f"Legacy forward {method} {target_url} -> {upstream.status_code}")

    passthrough = {
        name: value
        for name, value in upstream.headers.items()
        if name.lower() not in UNFORWARDABLE_RESPONSE_HEADERS
    }
    return ForwardedResponse(
        status_code=upstream.status_code,
        content=upstream.content,
        headers=passthrough,
    )
