"""Store selection for PostGIS or in-memory backends."""

from __future__ import annotations

from typing import Optional

from ..config import Settings
from ..utils.logging import get_logger
from .base import PropertyStore
from .memory_store import MemoryStore

LOGGER = get_logger("db.repo")


def build_store(settings: Settings) -> PropertyStore:
    store_settings = settings.store
    if store_settings.mode == "postgis":
        from .postgis_store import PostgisStore

        LOGGER.info("Repository running in PostGIS mode")
        return PostgisStore(store_settings)
    LOGGER.info("Repository running in memory mode")
    return MemoryStore(grid_deg=store_settings.grid_deg)


_repo_singleton: Optional[PropertyStore] = None


def get_repository(settings: Optional[Settings] = None) -> PropertyStore:
    global _repo_singleton
    if _repo_singleton is None:
        _repo_singleton = build_store(settings or Settings.from_env())
    return _repo_singleton


def reset_repository() -> None:
    global _repo_singleton
    if _repo_singleton is not None:
        _repo_singleton.close()
    _repo_singleton = None
