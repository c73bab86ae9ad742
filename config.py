# config.py

import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DESO_NODE_URL = "https://node.deso.org"
DEFAULT_SPATIUM_API_URL = "https://api.spatiumstories.xyz"
DEFAULT_SPATIUM_PUBLIC_KEY = "BC1YLg9piUDwrwTZfRipfXNq3hW3RZHW3fJZ7soDNNNnftcqrJvyrbq"
DEFAULT_ASSOCIATION_TYPE = "Spatium Author"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    deso_node_url: str = DEFAULT_DESO_NODE_URL
    spatium_api_url: str = DEFAULT_SPATIUM_API_URL
    spatium_public_key: str = DEFAULT_SPATIUM_PUBLIC_KEY
    association_type: str = DEFAULT_ASSOCIATION_TYPE
    author_nft_type: str = DEFAULT_ASSOCIATION_TYPE
    association_page_limit: int = 100
    max_workers: int = 16
    request_timeout: int = 30
    job_timeout_seconds: int = 840
    deadline_margin_seconds: int = 10
    dry_run: bool = False
    log_level: str = "INFO"


def _get_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using %d", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s=%d is below %d, using %d", name, value, minimum, default)
        return default
    return value


def _get_url(env: Mapping[str, str], name: str, default: str) -> str:
    return (env.get(name) or default).strip().rstrip("/")


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ
    return Config(
        deso_node_url=_get_url(env, "DESO_NODE_URL", DEFAULT_DESO_NODE_URL),
        spatium_api_url=_get_url(env, "SPATIUM_API_URL", DEFAULT_SPATIUM_API_URL),
        spatium_public_key=(env.get("SPATIUM_PUBLIC_KEY") or DEFAULT_SPATIUM_PUBLIC_KEY).strip(),
        association_type=env.get("ASSOCIATION_TYPE") or DEFAULT_ASSOCIATION_TYPE,
        author_nft_type=env.get("AUTHOR_NFT_TYPE") or DEFAULT_ASSOCIATION_TYPE,
        association_page_limit=_get_int(env, "ASSOCIATION_PAGE_LIMIT", 100, minimum=1),
        max_workers=_get_int(env, "MAX_WORKERS", 16, minimum=1),
        request_timeout=_get_int(env, "REQUEST_TIMEOUT", 30, minimum=1),
        job_timeout_seconds=_get_int(env, "JOB_TIMEOUT_SECONDS", 840, minimum=1),
        deadline_margin_seconds=_get_int(env, "DEADLINE_MARGIN_SECONDS", 10),
        dry_run=env.get("DRY_RUN", "0") == "1",
        log_level=_get_log_level(env),
    )


def _get_log_level(env: Mapping[str, str]) -> str:
    level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if level not in LOG_LEVELS:
        logger.warning("LOG_LEVEL=%r is not a logging level, using INFO", level)
        return "INFO"
    return level
