"""Load a CSV or JSON listing export into the store."""

from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ..config import Settings
from ..exceptions import BatchValidationError
from ..services.ingest_service import IngestService
from ..utils.logging import configure_logging, get_logger
from .repo import build_store

LOGGER = get_logger("db.seed")


def load_dataframe(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Missing data file: {path}")
    if path.suffix.lower() == ".json":
        df = pd.read_json(path, dtype={"id": str})
    else:
        df = pd.read_csv(path, dtype={"id": str})
    return df


def _clean(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def dataframe_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    return [{k: _clean(v) for k, v in row.items()} for row in df.to_dict(orient="records")]


def seed(path: Path, replace: bool = False, settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    records = dataframe_to_records(load_dataframe(path))
    store = build_store(settings)
    store.open()
    try:
        store.init_schema()
        LOGGER.info("Loading %d listings from %s", len(records), path)
        result = IngestService(store, legacy_truthy=settings.legacy_truthy).load(records, replace=replace)
    finally:
        store.close()
    LOGGER.info("Seed complete: %s, total=%d", result.message, result.total)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Load listings into the geoprops store")
    parser.add_argument("path", type=Path, help="CSV or JSON file with listing rows")
    parser.add_argument("--replace", action="store_true", help="delete every existing listing first")
    args = parser.parse_args(argv)

    configure_logging()
    try:
        seed(args.path, replace=args.replace)
    except BatchValidationError as exc:
        LOGGER.error("%s: %d invalid rows", exc.message, len(exc.invalid))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
