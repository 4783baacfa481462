from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from src.backend.config import ProxySettings
from src.backend.invoker import BackendInvoker
from src.backend.relay import RelayedResponse, relay_response

from .composer import QueryComposer, QueryComposerConfig
from .exceptions import SearchTransportError
from .normalizer import normalize_request
from .schemas import RequestContext

logger = logging.getLogger(__name__)


class SearchProxyService:
    """Application-layer search proxy.

    Implements:
      1) Compose a backend query from raw request parameters
      2) Send it to the search backend and relay the answer

    Nothing is kept between calls; every request starts from the template in
    ``settings``.
    """

    def __init__(
        self,
        settings: ProxySettings,
        *,
        invoker: Optional[BackendInvoker] = None,
        composer: Optional[QueryComposer] = None,
    ):
        self.settings = settings
        self.composer = composer or QueryComposer(
            QueryComposerConfig(placeholder=settings.placeholder)
        )
        self.invoker = invoker or BackendInvoker(settings)

    def compose(
        self, params: Mapping[str, Any], context: Optional[RequestContext] = None
    ) -> Dict[str, Any]:
        """Compose the query document for ``params`` without sending it."""
        request = normalize_request(params)
        return self.composer.compose(self.settings.query_template, request, context)

    def search(
        self, params: Mapping[str, Any], context: Optional[RequestContext] = None
    ) -> RelayedResponse:
        """Compose, send and relay one search request."""
        context = context or RequestContext()
        body = self.composer.render(self.compose(params, context))

        try:
            response = self.invoker.search(body)
        except SearchTransportError:
            # No status to forward; the relay falls back to its default.
            logger.info("Relaying default status after transport failure")
            return relay_response(None, context)

        return relay_response(response, context)

    def close(self) -> None:
        self.invoker.close()
