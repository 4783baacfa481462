"""Turn raw request parameters into a :class:`SearchRequest`."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping

from src.utils.sanitize import sanitize_number, sanitize_string, split_list, to_int

from .schemas import (
    Order,
    OrderBy,
    Relation,
    SearchRequest,
    TaxonomyFilter,
    format_search_request,
)

logger = logging.getLogger(__name__)

TAXONOMY_PARAM_RE = re.compile(r"^tax-(\S+)$")
TERM_RELATION_PARAM_RE = re.compile(r"^term_relations\[(\S+)\]$")


def _term_relations(params: Mapping[str, Any]) -> Dict[str, str]:
    """Collect per-taxonomy relation overrides.

    Accepts both the bracketed query-string form (``term_relations[color]=and``)
    and an already decoded mapping under ``term_relations``.
    """
    relations: Dict[str, str] = {}

    nested = params.get("term_relations")
    if isinstance(nested, Mapping):
        for slug, value in nested.items():
            relations[str(slug)] = sanitize_string(value)

    for key, value in params.items():
        match = TERM_RELATION_PARAM_RE.match(str(key))
        if match:
            relations[match.group(1)] = sanitize_string(value)

    return relations


def _taxonomy_filters(
    params: Mapping[str, Any], relation: Relation
) -> Dict[str, TaxonomyFilter]:
    overrides = _term_relations(params)
    taxonomies: Dict[str, TaxonomyFilter] = {}

    for key, value in params.items():
        match = TAXONOMY_PARAM_RE.match(str(key))
        if not match or not value:
            continue

        slug = match.group(1)
        override = overrides.get(slug)
        tax_relation = Relation.parse(override) if override else relation

        term_ids = []
        for item in split_list(value, sanitize_number):
            term_id = to_int(item)
            if term_id is not None:
                term_ids.append(term_id)

        taxonomies[slug] = TaxonomyFilter(relation=tax_relation, term_ids=tuple(term_ids))

    return taxonomies


def normalize_request(params: Mapping[str, Any]) -> SearchRequest:
    """Build a :class:`SearchRequest` from raw caller parameters.

    Never raises for malformed values: every field degrades to its default.
    """

    relation = Relation.parse(sanitize_string(params.get("relation")))

    post_types = split_list(params.get("post_type"), sanitize_string)

    request = SearchRequest(
        term=sanitize_string(params.get("search")),
        per_page=to_int(params.get("per_page")),
        offset=to_int(params.get("offset")),
        orderby=OrderBy.parse(sanitize_string(params.get("orderby"))),
        order=Order.parse(sanitize_string(params.get("order"))),
        highlight_tag=sanitize_string(params.get("highlight")),
        post_types=tuple(dict.fromkeys(post_types)),
        taxonomy_filters=_taxonomy_filters(params, relation),
        min_price=sanitize_number(params.get("min_price")),
        max_price=sanitize_number(params.get("max_price")),
        relation=relation,
    )
    logger.debug("Normalized search request: %s", format_search_request(request))
    return request


__all__ = ["normalize_request", "TAXONOMY_PARAM_RE"]
