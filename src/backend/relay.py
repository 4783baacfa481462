from __future__ import annotations

import gzip
import logging
import re
import zlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from src.search.exceptions import SearchBackendError
from src.search.schemas import RequestContext

from .invoker import BackendResponse

logger = logging.getLogger(__name__)

DEFAULT_STATUS_CODE = 404

FORWARDED_HEADER_RE = re.compile(r"^(?:Content-Type|Content-Language|Content-Security|X-)", re.IGNORECASE)
COOKIE_DOMAIN_RE = re.compile(r"(domain\s*=\s*)[^;\s]+", re.IGNORECASE)
COOKIE_PATH_RE = re.compile(r"\s*;?\s*path\s*=\s*[^;\s]+", re.IGNORECASE)


@dataclass
class RelayedResponse:
    status_code: int
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""


def _cookie_host(host: str) -> str:
    # Cookie domains never carry a port.
    return host.rsplit(":", 1)[0] if host.count(":") == 1 else host


def rewrite_cookie(value: str, host: str) -> str:
    """Move a Set-Cookie value onto ``host`` and drop its path attribute."""
    if host:
        value = COOKIE_DOMAIN_RE.sub(lambda m: f"{m.group(1)}.{_cookie_host(host)}", value)
    return COOKIE_PATH_RE.sub("", value)


def _decompress(body: bytes) -> bytes:
    try:
        return gzip.decompress(body)
    except (OSError, EOFError, zlib.error) as e:
        raise SearchBackendError(f"Backend sent an invalid gzip body: {e}") from e


def relay_response(
    response: Optional[BackendResponse], context: Optional[RequestContext] = None
) -> RelayedResponse:
    """Rewrite a raw backend response into what the caller receives.

    - Status is forwarded; a missing status becomes 404
    - Content-Type, Content-Language, Content-Security* and X-* headers pass through
    - Set-Cookie gets the caller host as domain and loses any path
    - A gzip body is decompressed and its Content-Encoding is not forwarded
    """
    context = context or RequestContext()
    if response is None:
        return RelayedResponse(status_code=DEFAULT_STATUS_CODE)

    status_code = response.status_code or DEFAULT_STATUS_CODE
    headers: List[Tuple[str, str]] = []

    for name, value in response.headers:
        if FORWARDED_HEADER_RE.match(name):
            headers.append((name, value))
        elif name.lower() == "set-cookie":
            headers.append((name, rewrite_cookie(value, context.host)))

    body = response.body
    encoding = response.header("Content-Encoding")
    if encoding and encoding.strip().lower() == "gzip":
        body = _decompress(body)

    logger.debug("Relaying %s with %d headers", status_code, len(headers))
    return RelayedResponse(status_code=status_code, headers=headers, body=body)
