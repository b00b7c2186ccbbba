"""
Storage factory – switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backends (in-memory vs DB)
so the rest of the app can stay ignorant of where events and links live.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- LINKPAGE_STORAGE_BACKEND: "memory" (default) or "postgres"
- LINKPAGE_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional, Tuple

# In-memory storage always available/lightweight
from linkpage_platform.storage.storage import EventStore, LinkRegistry

logger = logging.getLogger(__name__)


def _resolve(backend: Optional[str], dsn: Optional[str]) -> Tuple[str, str]:
    # Read env **now** to avoid capturing stale values at import time
    be = (backend or os.getenv("LINKPAGE_STORAGE_BACKEND", "memory")).strip().lower()
    if be == "memory":
        return be, ""
    if be == "postgres":
        dsn = dsn or os.getenv("LINKPAGE_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env LINKPAGE_DB_DSN)")
        return be, dsn
    raise ValueError(f"Unknown storage backend: {be!r}")


def get_event_store(backend: Optional[str] = None, **kwargs):
    """
    Return an event store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads LINKPAGE_STORAGE_BACKEND.
    kwargs : dict
        For postgres, dsn="..." overrides LINKPAGE_DB_DSN.

    Returns
    -------
    BaseEventStore-compatible instance
    """
    be, dsn = _resolve(backend, kwargs.get("dsn"))
    logger.info("Selected event store backend: %r", be)
    if be == "memory":
        return EventStore()
    # Local import to avoid hard dependency when not using postgres
    from linkpage_platform.storage.db_storage import DBEventStore
    return DBEventStore(dsn=dsn)


def get_link_registry(backend: Optional[str] = None, **kwargs):
    """Return a link registry based on configuration; same rules as get_event_store."""
    be, dsn = _resolve(backend, kwargs.get("dsn"))
    logger.info("Selected link registry backend: %r", be)
    if be == "memory":
        return LinkRegistry()
    from linkpage_platform.storage.db_storage import DBLinkRegistry
    return DBLinkRegistry(dsn=dsn)
