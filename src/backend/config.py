from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from src.search.composer import DEFAULT_PLACEHOLDER
from src.search.exceptions import ConfigurationError

load_dotenv(override=True)

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = Path(__file__).parent / "config.yaml"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_LANGUAGE_COOKIE = "wp-wpml_current_language"


def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a given YAML file path.

    Args:
        config_path: Explicit path to the configuration file.

    Returns:
        Parsed configuration dictionary.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        ValueError: If there is an error parsing the YAML file.
    """
    path = Path(config_path)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file '{path}': {e}") from e

    return data or {}


@dataclass(frozen=True)
class ProxySettings:
    """Everything needed to compose and send one search request."""

    post_index_url: str
    query_template: str
    placeholder: str = DEFAULT_PLACEHOLDER
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    language_cookie: str = DEFAULT_LANGUAGE_COOKIE
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def search_endpoint(self) -> str:
        return f"{self.post_index_url.rstrip('/')}/_search"


def _read_template(cfg: Dict[str, Any], base_dir: Path) -> str:
    template = cfg.get("query_template")
    if template:
        return template if isinstance(template, str) else json.dumps(template)

    template_path = cfg.get("query_template_path")
    if not template_path:
        raise ConfigurationError(
            "Configuration must set 'query_template' or 'query_template_path'."
        )

    path = Path(template_path)
    if not path.is_absolute():
        path = base_dir / path
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Query template not readable: {path}") from e


def settings_from_config(cfg: Dict[str, Any], *, base_dir: Path | None = None) -> ProxySettings:
    """Resolve a config mapping plus environment overrides into settings.

    Env overrides:
      - SEARCH_PROXY_INDEX_URL
      - SEARCH_PROXY_USERNAME / SEARCH_PROXY_PASSWORD
      - SEARCH_PROXY_TIMEOUT
    """
    base_dir = base_dir or CONFIG_FILE_PATH.parent
    credentials = cfg.get("credentials") or {}

    post_index_url = os.getenv("SEARCH_PROXY_INDEX_URL") or cfg.get("post_index_url")
    if not post_index_url:
        raise ConfigurationError(
            "Search index URL missing. Set 'post_index_url' in the config file "
            "or SEARCH_PROXY_INDEX_URL in the environment."
        )

    raw_timeout = os.getenv("SEARCH_PROXY_TIMEOUT") or cfg.get("timeout_seconds")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
    except (TypeError, ValueError):
        logger.warning(
            "Ignoring invalid timeout %r, using %s seconds",
            raw_timeout,
            DEFAULT_TIMEOUT_SECONDS,
        )
        timeout = DEFAULT_TIMEOUT_SECONDS
    if timeout <= 0:
        timeout = DEFAULT_TIMEOUT_SECONDS

    return ProxySettings(
        post_index_url=str(post_index_url),
        query_template=_read_template(cfg, base_dir),
        placeholder=cfg.get("placeholder") or DEFAULT_PLACEHOLDER,
        timeout_seconds=timeout,
        language_cookie=cfg.get("language_cookie") or DEFAULT_LANGUAGE_COOKIE,
        username=os.getenv("SEARCH_PROXY_USERNAME") or credentials.get("username"),
        password=os.getenv("SEARCH_PROXY_PASSWORD") or credentials.get("password"),
    )


def load_settings(config_path: Path | str | None = None) -> ProxySettings:
    """Load settings from YAML (SEARCH_PROXY_CONFIG or the packaged config.yaml)."""
    path = Path(config_path or os.getenv("SEARCH_PROXY_CONFIG") or CONFIG_FILE_PATH)
    try:
        cfg = load_config(path)
    except (FileNotFoundError, ValueError) as e:
        raise ConfigurationError(str(e)) from e

    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping.")
    return settings_from_config(cfg, base_dir=path.parent)
