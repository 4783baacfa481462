"""Exceptions raised while composing, sending and relaying search queries."""

from __future__ import annotations


class SearchProxyError(Exception):
    """Base class for all search proxy failures."""


class ConfigurationError(SearchProxyError):
    """Settings or query template could not be resolved."""


class CompositionError(SearchProxyError):
    """The query document could not be built from the template."""


class SearchBackendError(SearchProxyError):
    """The search backend answered with something the relay cannot handle."""


class SearchTransportError(SearchProxyError):
    """The search backend could not be reached."""


__all__ = [
    "SearchProxyError",
    "ConfigurationError",
    "CompositionError",
    "SearchBackendError",
    "SearchTransportError",
]
