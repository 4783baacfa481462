"""FastAPI application for the search proxy.

The auto-registered OpenAPI/docs routes are disabled. Some FastAPI/Starlette
combinations serve the schema as "application/vnd.oai.openapi+json", which
strict Accept headers answer with 406 Not Acceptable. /openapi.json and /docs
are registered explicitly below with JSONResponse instead.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import os
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.middleware.cors import CORSMiddleware
from .routers.search import router as search_router


# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Nothing to warm up: settings and template are loaded per request.
    yield


# Optional base path for deployments under a subpath (e.g. the proxy mounted
# at https://example.com/search-proxy/...). Used as the ASGI root_path and
# advertised via OpenAPI "servers".
_env_base_path = os.getenv("API_BASE_PATH", "").strip()
if _env_base_path and not _env_base_path.startswith("/"):
    _env_base_path = "/" + _env_base_path
if _env_base_path.endswith("/") and _env_base_path != "/":
    _env_base_path = _env_base_path.rstrip("/")

app = FastAPI(
    title="Search Proxy",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    root_path=_env_base_path or "",
)


# CORS: storefront pages on other origins call the proxy from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


app.include_router(search_router)


@app.get("/health", tags=["ops"], summary="Health check")
async def health():
    return {"status": "ok"}


def _with_servers(base_path: str | None):
    """Return OpenAPI schema optionally annotated with servers -> [{url: base_path}]."""
    schema = app.openapi()
    if base_path and base_path != "/":
        # Copy-on-write: FastAPI caches app.openapi()
        schema = {**schema, "servers": [{"url": base_path}]}
    return schema


@app.get("/openapi.json", include_in_schema=False)
def openapi_json():
    return JSONResponse(_with_servers(_env_base_path or None))


# Relative openapi_url so the UI also works behind a subpath.
@app.get("/docs", include_in_schema=False)
def swagger_ui():
    return get_swagger_ui_html(openapi_url="openapi.json", title="Search Proxy API Docs")
