"""
ledger_config -- single public entrypoint for import settings.

``get_settings()`` is the only way runtime code obtains configuration.  It
reads the YAML file named by ``LEDGER_IMPORT_CONFIG`` when set, applies
``LEDGER_IMPORT_DATABASE_URL`` / ``LEDGER_IMPORT_LOG_LEVEL`` overrides, and
otherwise returns defaults.

Architecture position:
    Sits beside ``ledger_kernel``; the kernel MUST NEVER import from here.
"""

from __future__ import annotations

import os
from pathlib import Path

from ledger_config.loader import ENV_CONFIG_PATH, load_settings
from ledger_config.schema import ImportSettings
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")


def get_settings(path: Path | None = None) -> ImportSettings:
    """Load the active ``ImportSettings``."""
    if path is None and os.environ.get(ENV_CONFIG_PATH):
        path = Path(os.environ[ENV_CONFIG_PATH])
    settings = load_settings(path)
    _logger.info(
        "settings_loaded",
        extra={
            "config_path": str(path) if path else None,
            "preview_rows": settings.preview_rows,
            "holding_concurrency": settings.holding_concurrency,
        },
    )
    return settings


__all__ = ["ImportSettings", "get_settings", "load_settings"]
