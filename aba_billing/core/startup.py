"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging
from pathlib import Path

from aba_billing.core.config import Config, get_config
from aba_billing.core.exceptions import ConfigurationError
from aba_billing.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


def validate_startup_config() -> Config:
    """Fail-fast config checks before any backend call is made."""
    config = get_config()
    export_dir = Path(config.EXPORT_DIR)
    if export_dir.exists() and not export_dir.is_dir():
        raise ConfigurationError(f"EXPORT_DIR is not a directory: {export_dir}")

    if config.OWNERSHIP_FALLBACK == "open":
        logger.debug(
            "startup.visibility.fail_open",
            extra={"event": "startup.visibility.fail_open"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "api_base_url": config.API_BASE_URL,
        },
    )
    return config


def bootstrap() -> Config:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    return validate_startup_config()
