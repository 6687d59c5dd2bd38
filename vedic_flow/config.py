"""Configuration helpers for the Vedic Flow backend."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Mapping

from dotenv import load_dotenv

OTHER_PROVIDER_PREFIX = "VEDICFLOW_LLM_"
OTHER_PROVIDER_SUFFIX = "_API_KEY"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_REQUEST_TIMEOUT = 60.0

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

load_dotenv(override=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Settings container for provider credentials and journey behaviour.

    OpenAI is considered the primary provider; if its key is missing the
    configuration falls back to other vendors in priority order.
    """

    openai_api_key: str | None = None
    gemini_api_key: str | None = None
    anthropic_api_key: str | None = None
    # Additional providers discovered from environment variables.
    additional_api_keys: Dict[str, str] = field(default_factory=dict)
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    # Seconds between the intake summary and the first stage starting.
    handoff_delay: float = 0.0
    strict_transitions: bool = False
    log_level: str = "INFO"

    @property
    def primary_provider(self) -> str | None:
        """Return the preferred provider based on available credentials."""

        if self.openai_api_key:
            return "openai"
        if self.gemini_api_key:
            return "gemini"
        if self.anthropic_api_key:
            return "anthropic"
        for provider, api_key in self.additional_api_keys.items():
            if api_key:
                return provider
        return None

    def get_api_key(self, provider: str | None = None) -> str | None:
        """Return the API key for the requested provider.

        When *provider* is omitted the primary provider's key is returned.
        """

        resolved_provider = provider or self.primary_provider
        if resolved_provider == "openai":
            return self.openai_api_key
        if resolved_provider == "gemini":
            return self.gemini_api_key
        if resolved_provider == "anthropic":
            return self.anthropic_api_key
        if resolved_provider is None:
            return None
        return self.additional_api_keys.get(resolved_provider)


def _extract_additional_api_keys(environ: Mapping[str, str]) -> Dict[str, str]:
    """Collect provider keys having the ``VEDICFLOW_LLM_*_API_KEY`` pattern."""

    discovered: Dict[str, str] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(OTHER_PROVIDER_PREFIX) or not env_key.endswith(OTHER_PROVIDER_SUFFIX):
            continue

        provider = env_key[len(OTHER_PROVIDER_PREFIX) : -len(OTHER_PROVIDER_SUFFIX)].lower()
        if provider in {"openai", "gemini", "anthropic"}:
            # Skip duplicates for providers already handled explicitly.
            continue
        if value:
            discovered[provider] = value
    return discovered


def _read_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", key, raw)
        return default


def _read_flag(environ: Mapping[str, str], key: str) -> bool:
    return environ.get(key, "").strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read environment variables and return cached settings."""

    environ = os.environ
    return Settings(
        openai_api_key=environ.get("OPENAI_API_KEY"),
        gemini_api_key=environ.get("GEMINI_API_KEY"),
        anthropic_api_key=environ.get("ANTHROPIC_API_KEY"),
        additional_api_keys=_extract_additional_api_keys(environ),
        model=environ.get("VEDICFLOW_MODEL") or DEFAULT_MODEL,
        temperature=_read_float(environ, "VEDICFLOW_TEMPERATURE", DEFAULT_TEMPERATURE),
        request_timeout=_read_float(environ, "VEDICFLOW_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        handoff_delay=max(0.0, _read_float(environ, "VEDICFLOW_HANDOFF_DELAY", 0.0)),
        strict_transitions=_read_flag(environ, "VEDICFLOW_STRICT_TRANSITIONS"),
        log_level=(environ.get("VEDICFLOW_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the ``vedic_flow`` logger."""

    package_logger = logging.getLogger("vedic_flow")
    package_logger.setLevel(level)
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    package_logger.addHandler(handler)

    if package_logger.getEffectiveLevel() > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)
