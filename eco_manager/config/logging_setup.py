"""
Process-wide logging configuration.

Modules log through ``logging.getLogger(__name__)``; this module only
installs the root handler once, at application start-up.
"""

from __future__ import annotations

import logging
from typing import Optional

from eco_manager.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a stream handler on the root logger (idempotent)."""
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    # requests/urllib3 are chatty at DEBUG; keep them at WARNING
    logging.getLogger("urllib3").setLevel(logging.WARNING)
