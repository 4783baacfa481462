from __future__ import annotations

import logging
from typing import Any, Dict, Iterator

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from src.backend.config import ProxySettings, load_settings
from src.search import (
    CompositionError,
    ConfigurationError,
    RequestContext,
    SearchBackendError,
)
from src.search.service import SearchProxyService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


class ComposedQueryResponse(BaseModel):
    endpoint: str = Field(..., description="Backend endpoint the query would be sent to.")
    query: Dict[str, Any] = Field(
        ..., description="Query document composed from the template and parameters."
    )


def get_settings() -> ProxySettings:
    # Loaded per request so template updates are picked up without a restart.
    try:
        return load_settings()
    except ConfigurationError as exc:
        logger.exception("Search proxy configuration failed")
        raise HTTPException(status_code=500, detail=f"Configuration error: {exc}") from exc


def get_search_service(
    settings: ProxySettings = Depends(get_settings),
) -> Iterator[SearchProxyService]:
    service = SearchProxyService(settings)
    try:
        yield service
    finally:
        service.close()


def _request_context(request: Request, settings: ProxySettings) -> RequestContext:
    host = request.headers.get("host") or request.url.hostname or ""
    return RequestContext(
        host=host,
        language=request.cookies.get(settings.language_cookie),
    )


@router.get(
    "",
    summary="Search the post index",
    response_class=Response,
)
def search(
    request: Request,
    service: SearchProxyService = Depends(get_search_service),
) -> Response:
    """Compose a query from the request parameters and relay the backend answer.

    Parameters: search, per_page, offset, orderby, order, highlight, relation,
    post_type, tax-<slug>, term_relations[<slug>], min_price, max_price.
    """
    context = _request_context(request, service.settings)
    try:
        relayed = service.search(request.query_params, context)
    except CompositionError as exc:
        logger.exception("Search query composition failed")
        raise HTTPException(status_code=500, detail=f"Query composition failed: {exc}") from exc
    except SearchBackendError as exc:
        logger.exception("Search backend response could not be relayed")
        raise HTTPException(status_code=502, detail=f"Search backend error: {exc}") from exc

    response = Response(content=relayed.body, status_code=relayed.status_code)
    for name, value in relayed.headers:
        response.headers.append(name, value)
    return response


@router.get(
    "/query",
    summary="Compose the backend query without sending it",
    response_model=ComposedQueryResponse,
)
def compose_query(
    request: Request,
    service: SearchProxyService = Depends(get_search_service),
) -> ComposedQueryResponse:
    context = _request_context(request, service.settings)
    try:
        query = service.compose(request.query_params, context)
    except CompositionError as exc:
        logger.exception("Search query composition failed")
        raise HTTPException(status_code=500, detail=f"Query composition failed: {exc}") from exc

    return ComposedQueryResponse(endpoint=service.settings.search_endpoint, query=query)
