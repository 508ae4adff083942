"""
Data Alchemist configuration: settings, constants, accepted file types.
"""
from __future__ import annotations

import functools
import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Upload constants
# ---------------------------------------------------------------------------
ALLOWED_EXTENSIONS = (".csv", ".xlsx")
MISSING_FILES_MESSAGE = "Please upload all three required files: clients, workers, and tasks"

# ---------------------------------------------------------------------------
# UI state
# ---------------------------------------------------------------------------
ACTIVE_VIEWS = ("upload", "data", "rules", "priorities", "export")
SEARCH_HISTORY_SIZE = 10

# ---------------------------------------------------------------------------
# Language-model search defaults
# ---------------------------------------------------------------------------
DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_LLM_MODEL = "gpt-3.5-turbo"
LLM_TEMPERATURE = 0.3
LLM_MAX_TOKENS = 1000
SEARCH_SAMPLE_SIZE = 3

CORS_ORIGINS = ["*"]


class Settings:
    """Runtime configuration loaded from environment variables."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        llm_base_url: Optional[str] = None,
        llm_model: Optional[str] = None,
        llm_timeout: Optional[float] = None,
        llm_retries: Optional[int] = None,
        fallback_delay: Optional[float] = None,
        log_level: Optional[str] = None,
    ) -> None:
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.llm_base_url = llm_base_url or os.getenv("DATA_ALCHEMIST_LLM_BASE_URL", DEFAULT_LLM_BASE_URL)
        self.llm_model = llm_model or os.getenv("DATA_ALCHEMIST_LLM_MODEL", DEFAULT_LLM_MODEL)

        timeout_env = os.getenv("DATA_ALCHEMIST_LLM_TIMEOUT")
        self.llm_timeout = llm_timeout or (float(timeout_env) if timeout_env else 30.0)

        retries_env = os.getenv("DATA_ALCHEMIST_LLM_RETRIES")
        self.llm_retries = llm_retries or (int(retries_env) if retries_env else 2)

        if fallback_delay is None:
            delay_env = os.getenv("DATA_ALCHEMIST_SEARCH_FALLBACK_DELAY")
            fallback_delay = float(delay_env) if delay_env else 0.0
        self.fallback_delay = fallback_delay

        self.log_level = (log_level or os.getenv("DATA_ALCHEMIST_LOG_LEVEL", "INFO")).upper()

    @property
    def endpoint(self) -> Optional[str]:
        if not self.llm_base_url:
            return None
        return self.llm_base_url.rstrip("/")


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Route library loggers to stderr at the configured level."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
