import logging
from pathlib import Path
import pandas as pd
from pydantic import ValidationError

from . import settings
from .errors import CatalogUnavailableError
from .schemas import ComboEntry, StockRecord
from .utils import load_csv

logger = logging.getLogger(__name__)


class ComboCatalog:
    """Bill of materials: parent SKU -> component entries, in file order."""

    def __init__(self, entries: list[ComboEntry] | None = None):
        self._by_parent: dict[str, list[ComboEntry]] = {}
        for entry in entries or []:
            self._by_parent.setdefault(entry.parent_sku, []).append(entry)

    def lookup(self, sku: str) -> list[ComboEntry]:
        return list(self._by_parent.get(sku, []))

    def __len__(self) -> int:
        return len(self._by_parent)


class StockCatalog:
    """Stock records keyed by exact SKU. Later duplicates overwrite earlier ones."""

    def __init__(self, records: list[StockRecord] | None = None):
        self._by_sku: dict[str, StockRecord] = {}
        for record in records or []:
            self._by_sku[record.sku] = record

    def lookup(self, sku: str) -> StockRecord | None:
        return self._by_sku.get(sku)

    def __len__(self) -> int:
        return len(self._by_sku)


def _read_catalog(name: str, path: Path, column_map: dict[str, str]) -> pd.DataFrame:
    """Loads a catalog CSV and renames its headers to the internal schema."""
    if not path.exists():
        raise CatalogUnavailableError(name, path)

    # SKUs are read as text so leading zeros survive.
    df = load_csv(path, dtype=str)
    if df is None:
        raise CatalogUnavailableError(name, path, "unreadable file")

    df = df.rename(columns=column_map)
    missing = [col for col in column_map.values() if col not in df.columns]
    if missing:
        raise CatalogUnavailableError(name, path, f"missing columns {missing}")

    df = df[list(column_map.values())]
    df = df.dropna(subset=[list(column_map.values())[0]]).copy()
    return df


def load_stock_catalog(path: Path | None = None) -> StockCatalog:
    """Reads the stock export into a StockCatalog, validating every row."""
    path = path or settings.INPUT_DIR / settings.STOCK_CATALOG_FILENAME
    df = _read_catalog("Stock", path, settings.STOCK_COLUMNS)

    df["sku"] = df["sku"].str.strip()
    df["available_quantity"] = pd.to_numeric(df["available_quantity"], errors="coerce").fillna(0)
    df = df.fillna("")

    try:
        records = [StockRecord(**row) for row in df.to_dict("records")]
    except ValidationError as e:
        raise CatalogUnavailableError("Stock", path, f"invalid rows: {e}") from e

    logger.info(f"✅ Loaded {len(records)} stock records from {path.name}.")
    return StockCatalog(records)


def load_combo_catalog(path: Path | None = None) -> ComboCatalog:
    """Reads the combos export into a ComboCatalog."""
    path = path or settings.INPUT_DIR / settings.COMBO_CATALOG_FILENAME
    df = _read_catalog("Combo", path, settings.COMBO_COLUMNS)

    df["parent_sku"] = df["parent_sku"].str.strip()
    df["component_sku"] = df["component_sku"].fillna("").str.strip()
    # A blank or unparseable multiplier is kept as 0 so expansion flags it.
    df["multiplier"] = pd.to_numeric(df["multiplier"], errors="coerce").fillna(0)

    try:
        entries = [ComboEntry(**row) for row in df.to_dict("records")]
    except ValidationError as e:
        raise CatalogUnavailableError("Combo", path, f"invalid rows: {e}") from e

    catalog = ComboCatalog(entries)
    logger.info(f"✅ Loaded {len(catalog)} combos ({len(entries)} components) from {path.name}.")
    return catalog
