"""Search application layer.

This package turns a caller's search parameters into a backend query:
- Normalize raw parameters into a typed request
- Compose the query document from the configured template
- Build filter clauses and push them into post_filter and aggregations

``service.SearchProxyService`` ties composition to the backend invoker and
response relay; import it from ``src.search.service`` (the backend modules
depend on this package).
"""

from .composer import QueryComposer, QueryComposerConfig
from .exceptions import (
    CompositionError,
    ConfigurationError,
    SearchBackendError,
    SearchProxyError,
    SearchTransportError,
)
from .normalizer import normalize_request
from .schemas import RequestContext, SearchRequest

__all__ = [
    "QueryComposer",
    "QueryComposerConfig",
    "CompositionError",
    "ConfigurationError",
    "SearchBackendError",
    "SearchProxyError",
    "SearchTransportError",
    "normalize_request",
    "RequestContext",
    "SearchRequest",
]
