"""Filter clause construction and propagation into post_filter and aggregations."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .schemas import FilterClause, Relation, SearchRequest

logger = logging.getLogger(__name__)

POST_TYPE_FIELD = "post_type.raw"
PRICE_FIELD = "meta._price.double"
LANGUAGE_FIELD = "post_lang.keyword"

MATCH_ALL: Dict[str, Any] = {"match_all": {"boost": 1}}


def taxonomy_field(slug: str) -> str:
    return f"terms.{slug}.term_id"


def match_all() -> Dict[str, Any]:
    return copy.deepcopy(MATCH_ALL)


def values_clause(field: str, values: Iterable[Any], relation: Relation) -> Dict[str, Any]:
    """Match ``values`` against ``field``.

    ``or`` yields a single ``terms`` clause; ``and`` yields a ``bool.must`` with
    one ``term`` clause per value.
    """
    values = list(values)
    if relation is Relation.OR:
        return {"terms": {field: values}}

    return {"bool": {"must": [{"term": {field: value}} for value in values]}}


def post_type_filter(request: SearchRequest) -> Optional[FilterClause]:
    if not request.post_types:
        return None
    return FilterClause(
        name="post_type",
        clause=values_clause(POST_TYPE_FIELD, request.post_types, request.relation),
    )


def taxonomy_filters(request: SearchRequest) -> List[FilterClause]:
    clauses = []
    for slug, taxonomy in request.taxonomy_filters.items():
        if not taxonomy.term_ids:
            continue
        clauses.append(
            FilterClause(
                name=slug,
                clause=values_clause(
                    taxonomy_field(slug), taxonomy.term_ids, taxonomy.relation
                ),
            )
        )
    return clauses


def price_filters(request: SearchRequest) -> List[FilterClause]:
    clauses = []
    if request.min_price:
        clauses.append(
            FilterClause(
                name="min_price",
                clause={"range": {PRICE_FIELD: {"gte": request.min_price}}},
            )
        )
    if request.max_price:
        clauses.append(
            FilterClause(
                name="max_price",
                clause={"range": {PRICE_FIELD: {"lte": request.max_price}}},
            )
        )
    return clauses


def build_filters(request: SearchRequest) -> Dict[str, Dict[str, Any]]:
    """Build the named filter set, in insertion order.

    Order: post_type, taxonomies (request-key order), min_price, max_price.
    A later clause with an already used name replaces the earlier one.
    """
    clauses: List[FilterClause] = []

    post_type = post_type_filter(request)
    if post_type is not None:
        clauses.append(post_type)
    clauses.extend(taxonomy_filters(request))
    clauses.extend(price_filters(request))

    filters: Dict[str, Dict[str, Any]] = {}
    for clause in clauses:
        filters[clause.name] = clause.clause
    return filters


def occurrence_for(relation: Relation) -> str:
    return "must" if relation is Relation.AND else "should"


def combine(existing: Mapping[str, Any], clauses: List[Dict[str, Any]], relation: Relation) -> Dict[str, Any]:
    return {
        "bool": {
            "must": [
                existing,
                {"bool": {occurrence_for(relation): clauses}},
            ]
        }
    }


def rewrite_language(existing: Mapping[str, Any], language: Optional[str]) -> Dict[str, Any]:
    """Point language term filters of ``existing`` at ``language``.

    Only top-level ``bool.must`` entries that are a ``term`` on the language
    field are touched. Returns a new filter; ``existing`` is left as is.
    """
    rewritten = copy.deepcopy(dict(existing))
    if language is None:
        return rewritten

    must = rewritten.get("bool", {}).get("must")
    if not isinstance(must, list):
        return rewritten

    for clause in must:
        term = clause.get("term") if isinstance(clause, dict) else None
        if isinstance(term, dict) and term.get(LANGUAGE_FIELD) is not None:
            term[LANGUAGE_FIELD] = language

    return rewritten


def propagate_to_aggregations(
    aggregations: Mapping[str, Any],
    filters: Mapping[str, Dict[str, Any]],
    relation: Relation,
) -> Dict[str, Any]:
    """Return a new aggregation map with ``filters`` applied.

    Only aggregations that declare sub-aggregations are filtered; the others
    are carried over untouched.
    """
    result: Dict[str, Any] = {}

    for agg_name, agg in aggregations.items():
        if not isinstance(agg, Mapping) or not agg.get("aggs"):
            result[agg_name] = agg
            continue

        new_filters = []
        for filter_name, clause in filters.items():
            # The own facet is only skipped for "or"; callers only get here
            # with "and", so every clause is applied.
            if filter_name == agg_name and relation is Relation.OR:
                continue
            new_filters.append(clause)

        if not new_filters:
            result[agg_name] = agg
            continue

        existing = agg.get("filter") or match_all()
        result[agg_name] = {**agg, "filter": combine(existing, new_filters, relation)}

    return result


def apply_filters(
    document: Mapping[str, Any],
    filters: Mapping[str, Dict[str, Any]],
    relation: Relation,
    *,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge ``filters`` into the post_filter and aggregations of ``document``.

    Returns a new document.
    """
    result = dict(document)

    has_post_filter = bool(document.get("post_filter"))
    existing = rewrite_language(document["post_filter"], language) if has_post_filter else match_all()

    if filters:
        result["post_filter"] = combine(existing, list(filters.values()), relation)
    elif has_post_filter:
        result["post_filter"] = existing

    aggregations = document.get("aggs")
    if not aggregations or relation is not Relation.AND:
        return result

    logger.debug(
        "Propagating filters %s into aggregations %s",
        list(filters),
        list(aggregations),
    )
    result["aggs"] = propagate_to_aggregations(aggregations, filters, relation)
    return result


__all__ = [
    "apply_filters",
    "build_filters",
    "propagate_to_aggregations",
    "rewrite_language",
    "values_clause",
    "taxonomy_field",
    "match_all",
]
