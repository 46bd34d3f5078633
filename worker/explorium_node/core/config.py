"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

FAILURE_POLICIES = {"continue", "abort"}


class ConfigError(RuntimeError):
    """Raised when configuration values are unusable."""


@dataclass(frozen=True)
class Settings:
    explorium_api_key: str
    explorium_base_url: str = "https://api.explorium.ai"
    request_timeout: int = 30
    worker_port: int = 9000
    match_chunk_size: int = 50
    enrich_chunk_size: int = 50
    events_chunk_size: int = 40
    max_page_size: int = 100
    enrichment_failure_policy: str = "continue"


def _positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    explorium_api_key = os.getenv("EXPLORIUM_API_KEY", "")
    explorium_base_url = os.getenv("EXPLORIUM_BASE_URL", "https://api.explorium.ai").rstrip("/")
    request_timeout = _positive_int("EXPLORIUM_REQUEST_TIMEOUT", "30")
    worker_port = int(os.getenv("WORKER_PORT", "9000"))
    match_chunk_size = _positive_int("EXPLORIUM_MATCH_CHUNK_SIZE", "50")
    enrich_chunk_size = _positive_int("EXPLORIUM_ENRICH_CHUNK_SIZE", "50")
    events_chunk_size = _positive_int("EXPLORIUM_EVENTS_CHUNK_SIZE", "40")
    max_page_size = _positive_int("EXPLORIUM_MAX_PAGE_SIZE", "100")
    failure_policy = os.getenv("EXPLORIUM_ENRICHMENT_FAILURE_POLICY", "continue").strip().lower()

    if failure_policy not in FAILURE_POLICIES:
        raise ConfigError(
            f"EXPLORIUM_ENRICHMENT_FAILURE_POLICY must be one of {sorted(FAILURE_POLICIES)}, got {failure_policy!r}"
        )
    if not explorium_api_key:
        logger.warning("EXPLORIUM_API_KEY is not configured; Explorium requests will be rejected.")

    return Settings(
        explorium_api_key=explorium_api_key,
        explorium_base_url=explorium_base_url,
        request_timeout=request_timeout,
        worker_port=worker_port,
        match_chunk_size=match_chunk_size,
        enrich_chunk_size=enrich_chunk_size,
        events_chunk_size=events_chunk_size,
        max_page_size=max_page_size,
        enrichment_failure_policy=failure_policy,
    )
