from __future__ import annotations

import copy
import json
from typing import Any, Dict

import pytest

from src.backend.config import ProxySettings

PROXY_ENV_VARS = (
    "SEARCH_PROXY_CONFIG",
    "SEARCH_PROXY_INDEX_URL",
    "SEARCH_PROXY_USERNAME",
    "SEARCH_PROXY_PASSWORD",
    "SEARCH_PROXY_TIMEOUT",
)

SEARCH_TEMPLATE: Dict[str, Any] = {
    "from": 0,
    "size": 10,
    "query": {
        "multi_match": {
            "query": "{{ep_placeholder}}",
            "fields": ["post_title^2", "post_content"],
        }
    },
    "aggs": {
        "post_type": {
            "aggs": {"post_type": {"terms": {"field": "post_type.raw"}}},
        },
        "max_price": {"max": {"field": "meta._price.double"}},
    },
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def template() -> Dict[str, Any]:
    return copy.deepcopy(SEARCH_TEMPLATE)


@pytest.fixture
def settings(template) -> ProxySettings:
    return ProxySettings(
        post_index_url="http://es.test/posts",
        query_template=json.dumps(template),
    )
