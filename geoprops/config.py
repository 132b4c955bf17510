"""Runtime configuration for geoprops."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DB_MODES = ("postgis", "memory")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class StoreSettings:
    """Connection and index settings for the property store."""

    mode: str = "memory"
    database_url: Optional[str] = None
    ssl: bool = False
    timeout_ms: int = 10_000
    pool_min: int = 1
    pool_max: int = 10
    grid_deg: float = 0.05

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @property
    def conninfo(self) -> str:
        if not self.database_url:
            raise ConfigurationError("DATABASE_URL not configured", setting="DATABASE_URL")
        return self.database_url


@dataclass
class Settings:
    store: StoreSettings = field(default_factory=StoreSettings)
    legacy_truthy: bool = False
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        """Create settings from the environment, reading a .env file first if present."""
        path = env_file or Path(__file__).resolve().parents[1] / ".env"
        load_dotenv(dotenv_path=path, override=False)

        database_url = os.getenv("DATABASE_URL") or None
        mode = os.getenv("DB_MODE", "postgis" if database_url else "memory").strip().lower()
        if mode not in DB_MODES:
            raise ConfigurationError(f"DB_MODE must be one of {DB_MODES}, got {mode!r}", setting="DB_MODE")
        if mode == "postgis" and not database_url:
            raise ConfigurationError("DB_MODE=postgis requires DATABASE_URL", setting="DATABASE_URL")

        ssl = _flag("DB_SSL") or os.getenv("NODE_ENV", "").lower() == "production"

        try:
            store = StoreSettings(
                mode=mode,
                database_url=database_url,
                ssl=ssl,
                timeout_ms=int(os.getenv("GEOPROPS_STORE_TIMEOUT_MS", "10000")),
                pool_min=int(os.getenv("GEOPROPS_POOL_MIN", "1")),
                pool_max=int(os.getenv("GEOPROPS_POOL_MAX", "10")),
                grid_deg=float(os.getenv("GEOPROPS_GRID_DEG", "0.05")),
            )
            port = int(os.getenv("PORT", "3000"))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        if store.grid_deg <= 0:
            raise ConfigurationError("GEOPROPS_GRID_DEG must be positive", setting="GEOPROPS_GRID_DEG")

        origins = [item.strip() for item in os.getenv("CORS_ORIGINS", "*").split(",") if item.strip()]

        return cls(
            store=store,
            legacy_truthy=_flag("GEOPROPS_LEGACY_TRUTHY"),
            port=port,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
        )
