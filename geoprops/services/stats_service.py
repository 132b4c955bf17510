"""Counts and health derived from the live store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from ..db.base import PropertyStore
from ..exceptions import StoreError
from ..models.property import Stats
from ..utils.logging import get_logger

LOGGER = get_logger("services.stats")


class StatsService:
    def __init__(self, store: PropertyStore) -> None:
        self.store = store

    def stats(self) -> Stats:
        return Stats(
            total=self.store.count(),
            by_operation=self.store.count_by("operation"),
            by_kind=self.store.count_by("kind"),
        )

    def health(self) -> Dict[str, Any]:
        """Report store connectivity; never raises for store failures."""
        try:
            self.store.ping()
            total = self.store.count()
        except StoreError as exc:
            LOGGER.warning("health_check_failed error=%s", exc)
            return {"status": "error", "database": "disconnected", "error": str(exc)}
        return {
            "status": "ok",
            "database": "connected",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "properties_count": total,
        }

