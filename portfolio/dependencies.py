"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends

from portfolio.config import get_settings
from portfolio.data_access import ContentRepository
from portfolio.store import (
    InMemoryTableStore,
    RestTableStore,
    SqlTableStore,
    StoreConfigurationError,
    TableStore,
)

_store: TableStore | None = None


def get_store() -> TableStore:
    """
    Return a singleton store so connections are shared across requests.
    """
    global _store
    if _store:
        return _store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _store = InMemoryTableStore()
    elif settings.database_url:
        _store = SqlTableStore(settings.database_url)
    elif settings.store_url and settings.store_api_key:
        _store = RestTableStore(url=settings.store_url, api_key=settings.store_api_key)
    else:
        raise StoreConfigurationError(
            "No content store configured: set STORE_URL and STORE_API_KEY, "
            "DATABASE_URL, or USE_IN_MEMORY_BACKENDS"
        )
    return _store


def get_repository(store: TableStore = Depends(get_store)) -> ContentRepository:
    # One per request so last_error never leaks between requests.
    return ContentRepository(store)
