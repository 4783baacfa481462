from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .exceptions import CompositionError
from .filters import apply_filters, build_filters, match_all
from .schemas import Order, OrderBy, RequestContext, SearchRequest

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "{{ep_placeholder}}"

SORT_FIELDS = {
    OrderBy.DATE: "post_date",
    OrderBy.PRICE: "meta._price.double",
    OrderBy.RATING: "meta._wc_average_rating.double",
}


def default_highlight() -> Dict[str, Any]:
    return {
        "type": "plain",
        "encoder": "html",
        "pre_tags": [""],
        "post_tags": [""],
        "fields": {
            "post_title": {
                "number_of_fragments": 0,
                "no_match_size": 9999,
            },
            "post_content_plain": {
                "number_of_fragments": 2,
                "fragment_size": 200,
                "no_match_size": 200,
            },
        },
    }


def parse_template(template: str | Mapping[str, Any]) -> Dict[str, Any]:
    """Parse a query template into a fresh, mutable document.

    Raises:
        CompositionError: If the template is not a JSON object.
    """
    if isinstance(template, Mapping):
        # Round-trip through JSON so the document never aliases the caller's.
        template = json.dumps(template)

    try:
        document = json.loads(template)
    except (TypeError, ValueError) as e:
        raise CompositionError(f"Query template is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise CompositionError(
            f"Query template must be a JSON object, got {type(document).__name__}"
        )
    return document


@dataclass(frozen=True)
class QueryComposerConfig:
    placeholder: str = DEFAULT_PLACEHOLDER


class QueryComposer:
    """Build the query document sent to the search backend.

    Steps run in a fixed order, later steps read what earlier ones set:
      1) search term substitution (or match_all)
      2) pagination
      3) sort
      4) highlighting
      5-7) filter construction and application
    """

    def __init__(self, config: QueryComposerConfig | None = None):
        self.config = config or QueryComposerConfig()

    def compose(
        self,
        template: str | Mapping[str, Any],
        request: SearchRequest,
        context: Optional[RequestContext] = None,
    ) -> Dict[str, Any]:
        context = context or RequestContext()

        document = parse_template(template)
        document = self._set_search_term(document, request.term)
        self._set_pagination(document, request)
        self._set_order(document, request)
        self._set_highlighting(document, request.highlight_tag)

        filters = build_filters(request)
        if filters:
            logger.debug(
                "Applying filters %s with relation '%s'",
                list(filters),
                request.relation.value,
            )
        return apply_filters(
            document, filters, request.relation, language=context.language
        )

    def render(self, document: Mapping[str, Any]) -> str:
        try:
            return json.dumps(document)
        except (TypeError, ValueError) as e:
            raise CompositionError(f"Query document is not serializable: {e}") from e

    def _set_search_term(self, document: Dict[str, Any], term: str) -> Dict[str, Any]:
        if not term:
            document["query"] = match_all()
            return document

        # Substitute on the rendered template; the term is JSON-escaped so it
        # can only ever land inside a string value.
        escaped = json.dumps(term)[1:-1]
        rendered = self.render(document).replace(self.config.placeholder, escaped)
        try:
            return json.loads(rendered)
        except ValueError as e:
            raise CompositionError(
                f"Query template is invalid after term substitution: {e}"
            ) from e

    def _set_pagination(self, document: Dict[str, Any], request: SearchRequest) -> None:
        if request.per_page is not None and request.per_page > 1:
            document["size"] = request.per_page
        if request.offset is not None and request.offset > 1:
            document["from"] = request.offset

    def _set_order(self, document: Dict[str, Any], request: SearchRequest) -> None:
        sort_clause = self.sort_clause(request.orderby, request.order)
        if sort_clause:
            document["sort"] = [sort_clause]

    @staticmethod
    def sort_clause(orderby: OrderBy, order: Order) -> Dict[str, Any]:
        field = SORT_FIELDS.get(orderby)
        if field is None:
            return {}

        clause: Dict[str, Any] = {"order": order.value}
        if orderby is OrderBy.PRICE:
            # Variants carry several prices; pick the one matching the direction.
            clause["mode"] = "min" if order is Order.ASC else "max"
        return {field: clause}

    def _set_highlighting(self, document: Dict[str, Any], tag: str) -> None:
        highlight = default_highlight()
        if tag:
            highlight["pre_tags"] = [f"<{tag}>"]
            highlight["post_tags"] = [f"</{tag}>"]
        document["highlight"] = highlight
