from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Relation(str, Enum):
    AND = "and"
    OR = "or"

    @classmethod
    def parse(cls, value: Any) -> "Relation":
        """Anything other than the literal ``and`` collapses to ``or``."""
        return cls.AND if value == cls.AND.value else cls.OR


class OrderBy(str, Enum):
    DATE = "date"
    PRICE = "price"
    RATING = "rating"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "OrderBy":
        for member in (cls.DATE, cls.PRICE, cls.RATING):
            if value == member.value:
                return member
        return cls.NONE


class Order(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Any) -> "Order":
        return cls.DESC if value == cls.DESC.value else cls.ASC


@dataclass(frozen=True)
class TaxonomyFilter:
    relation: Relation
    term_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SearchRequest:
    """Typed, sanitized view of one caller request."""

    term: str = ""
    per_page: Optional[int] = None
    offset: Optional[int] = None
    orderby: OrderBy = OrderBy.NONE
    order: Order = Order.ASC
    highlight_tag: str = ""
    post_types: Tuple[str, ...] = ()
    taxonomy_filters: Dict[str, TaxonomyFilter] = field(default_factory=dict)
    min_price: str = ""
    max_price: str = ""
    relation: Relation = Relation.OR


@dataclass(frozen=True)
class FilterClause:
    name: str
    clause: Dict[str, Any]


@dataclass(frozen=True)
class RequestContext:
    """Caller signals that feed composition and relaying.

    host: caller host, used to rewrite cookie domains.
    language: current UI language, used to rewrite language term filters.
    """

    host: str = ""
    language: Optional[str] = None


def format_search_request(request: SearchRequest) -> str:
    """Compact one-line representation for logs."""
    taxonomies = ",".join(
        f"{slug}:{tax.relation.value}:{len(tax.term_ids)}"
        for slug, tax in request.taxonomy_filters.items()
    )
    return (
        f"term={request.term!r}; relation={request.relation.value}; "
        f"orderby={request.orderby.value}/{request.order.value}; "
        f"post_types={list(request.post_types)}; taxonomies=[{taxonomies}]; "
        f"price=[{request.min_price or '-'}, {request.max_price or '-'}]"
    )
