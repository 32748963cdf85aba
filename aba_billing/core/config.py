"""Configuration module for the ABA Clinic billing client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from aba_billing import __version__
from aba_billing.core.enums import Currency
from aba_billing.core.exceptions import ConfigurationError

load_dotenv()

SUPPORTED_CURRENCIES = {c.value for c in Currency}
OWNERSHIP_FALLBACKS = {"open", "closed"}


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    API_BASE_URL: str
    API_TIMEOUT_SECONDS: int
    API_TOKEN: str | None
    AUTH_STORE_PATH: str
    BILLING_CURRENCY: str
    CONSULTATION_SEARCH_LIMIT: int
    OWNERSHIP_FALLBACK: str
    EXPORT_DIR: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="ABA Clinic Billing",
        APP_VERSION=os.getenv("APP_VERSION", __version__),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        API_BASE_URL=os.getenv("API_BASE_URL", "http://localhost:5000").rstrip("/"),
        API_TIMEOUT_SECONDS=int(os.getenv("API_TIMEOUT_SECONDS", "5")),
        API_TOKEN=os.getenv("API_TOKEN") or None,
        AUTH_STORE_PATH=os.getenv("AUTH_STORE_PATH", "auth-storage.json"),
        BILLING_CURRENCY=os.getenv("BILLING_CURRENCY", "MZN").strip().upper(),
        CONSULTATION_SEARCH_LIMIT=int(os.getenv("CONSULTATION_SEARCH_LIMIT", "20")),
        OWNERSHIP_FALLBACK=os.getenv("OWNERSHIP_FALLBACK", "open").strip().lower(),
        EXPORT_DIR=os.getenv("EXPORT_DIR", "."),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "aba-billing.log"),
    )
    _validate_config(config)
    return config


def _validate_api_base_url(base_url: str) -> None:
    parsed = urlparse(base_url)
    if parsed.scheme not in {"http", "https"}:
        raise ConfigurationError("API_BASE_URL must use http:// or https://.")
    if not parsed.hostname:
        raise ConfigurationError("API_BASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_api_base_url(config.API_BASE_URL)

    if config.API_TIMEOUT_SECONDS < 1:
        raise ConfigurationError("API_TIMEOUT_SECONDS must be >= 1.")
    if config.CONSULTATION_SEARCH_LIMIT < 1:
        raise ConfigurationError("CONSULTATION_SEARCH_LIMIT must be >= 1.")
    if config.BILLING_CURRENCY not in SUPPORTED_CURRENCIES:
        raise ConfigurationError("BILLING_CURRENCY must be one of MZN/USD/EUR.")
    if config.OWNERSHIP_FALLBACK not in OWNERSHIP_FALLBACKS:
        raise ConfigurationError("OWNERSHIP_FALLBACK must be 'open' or 'closed'.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and not config.API_BASE_URL.startswith("https://"):
        raise ConfigurationError("Production API_BASE_URL must use https://.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
