from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import ProxySettings

logger = logging.getLogger(__name__)


def get_http_client(
    settings: ProxySettings,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create an httpx client for the search backend.

    The timeout and optional basic-auth credentials come from ``settings``.
    ``transport`` lets callers swap the network layer (e.g. a MockTransport).
    """
    auth = None
    if settings.username:
        auth = httpx.BasicAuth(settings.username, settings.password or "")

    logger.debug(
        "Creating search backend client (timeout=%ss, auth=%s)",
        settings.timeout_seconds,
        "basic" if auth else "none",
    )
    return httpx.Client(
        auth=auth,
        timeout=httpx.Timeout(settings.timeout_seconds),
        follow_redirects=True,
        transport=transport,
    )
