"""
Builds the configured IECOStore (settings.store_backend).
"""

from __future__ import annotations

import logging
from typing import Optional

from eco_manager.config.settings import settings
from eco_manager.core.record_store import IECOStore

logger = logging.getLogger(__name__)


def create_store(backend: Optional[str] = None) -> IECOStore:
    backend = backend or settings.store_backend
    if backend == "local":
        from eco_manager.core.local_store import LocalECOStore
        store: IECOStore = LocalECOStore()
    elif backend == "remote":
        from eco_manager.core.remote_store import RemoteECOStore
        store = RemoteECOStore()
    else:
        raise ValueError(f"Unknown store backend {backend!r}; expected 'local' or 'remote'")
    logger.info("Using record store: %s", store.get_backend_name())
    return store
