"""Compose (and optionally send) a search query using SearchProxyService.

Configuration via constants below (no CLI args). Run:
	uv run python scripts/search.py

Environment:
	SEARCH_PROXY_CONFIG     (default src/backend/config.yaml)
	SEARCH_PROXY_INDEX_URL  (overrides post_index_url)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
import sys
from typing import Any, Dict

# Ensure the project root is on path so 'src' resolves
CURRENT_DIR = Path(__file__).resolve().parent
ROOT_DIR = CURRENT_DIR.parent
if str(ROOT_DIR) not in sys.path:
	sys.path.insert(0, str(ROOT_DIR))

from src.backend.config import load_settings  # type: ignore  # noqa: E402
from src.backend.invoker import BackendInvoker  # type: ignore  # noqa: E402
from src.search import RequestContext  # type: ignore  # noqa: E402
from src.search.service import SearchProxyService  # type: ignore  # noqa: E402


# ---------------------------------------------------------------------------
# Configuration Constants
# ---------------------------------------------------------------------------
PARAMS: Dict[str, Any] = {
	"search": "shoes",
	"relation": "and",
	"post_type": "product",
	"tax-product_cat": "12,15",
	"min_price": "10",
	"max_price": "50",
	"orderby": "price",
	"order": "desc",
}
LANGUAGE: str | None = "en"
SEND: bool = False
LOG_LEVEL: str = "INFO"


def run(params: Dict[str, Any], send: bool = SEND) -> Dict[str, Any]:
	"""Compose the query for ``params`` and log it; send it when ``send`` is set."""
	logger = logging.getLogger(__name__)

	settings = load_settings()
	context = RequestContext(host="localhost", language=LANGUAGE)
	with BackendInvoker(settings) as invoker:
		service = SearchProxyService(settings, invoker=invoker)
		query = service.compose(params, context)
		logger.info(
			"Composed query for %s:\n%s",
			settings.search_endpoint,
			json.dumps(query, indent=2, ensure_ascii=False),
		)
		if send:
			relayed = service.search(params, context)
			logger.info(
				"Backend answered %s (%d bytes): %s",
				relayed.status_code,
				len(relayed.body),
				relayed.body[:500].decode("utf-8", errors="replace"),
			)
	return query


def main() -> int:
	logging.basicConfig(
		level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s - %(message)s",
	)
	try:
		run(PARAMS)
		return 0
	except Exception as e:  # pragma: no cover
		logging.exception("Search failed: %s", e)
		return 1

if __name__ == "__main__":  # pragma: no cover
	raise SystemExit(main())
