from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import httpx

from src.search.exceptions import SearchTransportError

from .client import get_http_client
from .config import ProxySettings

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "Content-Type": "application/json",
    # The relay only knows how to undo gzip.
    "Accept-Encoding": "gzip",
}


@dataclass
class BackendResponse:
    """Raw backend answer: status, every header line and the undecoded body."""

    status_code: Optional[int]
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


class BackendInvoker:
    """Send a composed query to ``<post_index_url>/_search``.

    One POST per call, no retries. Non-2xx answers are returned as-is; only
    transport failures raise.
    """

    def __init__(self, settings: ProxySettings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = get_http_client(self.settings)
        return self._client

    def search(self, body: str) -> BackendResponse:
        endpoint = self.settings.search_endpoint
        logger.info("Sending search query to %s", endpoint)
        try:
            with self.client.stream(
                "POST", endpoint, content=body.encode("utf-8"), headers=REQUEST_HEADERS
            ) as response:
                raw = b"".join(response.iter_raw())
                headers = [(k, v) for k, v in response.headers.multi_items()]
        except httpx.RequestError as e:
            logger.warning("Search backend unreachable at %s: %s", endpoint, e)
            raise SearchTransportError(f"Search backend unreachable: {e}") from e

        logger.info("Search backend answered %s (%d bytes)", response.status_code, len(raw))
        return BackendResponse(status_code=response.status_code, headers=headers, body=raw)

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "BackendInvoker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
