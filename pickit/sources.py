import logging
from abc import ABC, abstractmethod
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from . import parsers, settings, utils
from .schemas import ManualEntry, Sale, SlaRecord, SourceResult

logger = logging.getLogger(__name__)


class SaleSource(ABC):
    """
    One marketplace feed. `fetch` may block on I/O and may raise; the
    orchestrator treats any failure as an empty contribution.
    """

    name: str = "source"

    @abstractmethod
    def fetch(self) -> SourceResult:
        pass


class SlaSource(ABC):
    """Resolves the SLA of a single shipment; None when it has none."""

    @abstractmethod
    def fetch(self, shipment_id: int) -> SlaRecord | None:
        pass


class CsvSaleSource(SaleSource):
    """Reads the latest order export for one marketplace from the input folder."""

    def __init__(self, name: str, prefix: str, input_dir: Path | None = None, zone: tzinfo | None = None):
        self.name = name
        self.prefix = prefix
        self.input_dir = input_dir or settings.INPUT_DIR
        self.zone = zone or ZoneInfo(settings.WAREHOUSE_TIMEZONE)

    def fetch(self) -> SourceResult:
        found_info = utils.find_latest_report(self.input_dir, self.prefix)
        if not found_info:
            logger.warning(f"  > ⚠️  File missing ({self.prefix}). Skipping {self.name}.")
            return SourceResult()

        path, file_date = found_info
        logger.info(f"  > Found: {path.name} (File Date: {file_date})")

        df = utils.load_csv(path, dtype=str)
        if df is None or df.empty:
            logger.warning(f"  > ⚠️  No data processed from {path.name}.")
            return SourceResult()

        result = parsers.parse_orders_export(df, origin=self.name, zone=self.zone)
        logger.info(f"✅ Parsed {path.name}: {len(result.sales)} sales, {len(result.orders)} orders.")
        return result


class CsvSlaSource(SlaSource):
    """SLA lookups served from an SLA export loaded once up front."""

    def __init__(self, records: dict[int, SlaRecord] | None = None):
        self.records = records or {}

    @classmethod
    def from_latest(cls, input_dir: Path | None = None, prefix: str | None = None) -> "CsvSlaSource":
        input_dir = input_dir or settings.INPUT_DIR
        prefix = prefix or settings.SLA_FILENAME_PREFIX
        found_info = utils.find_latest_report(input_dir, prefix)
        if not found_info:
            logger.info(f"INFO: No SLA export found ({prefix}).")
            return cls()

        path, _ = found_info
        df = utils.load_csv(path, dtype=str)
        if df is None:
            return cls()
        records = parsers.parse_sla_export(df, zone=ZoneInfo(settings.WAREHOUSE_TIMEZONE))
        logger.info(f"✅ Loaded {len(records)} SLA records from {path.name}.")
        return cls(records)

    def fetch(self, shipment_id: int) -> SlaRecord | None:
        return self.records.get(shipment_id)


# --- Source Registry ---
# Source name -> export filename prefix. Fetch and merge order follow settings.SOURCE_ORDER.
SOURCE_REGISTRY = {
    "ML ready_to_print": settings.ML_READY_TO_PRINT_PREFIX,
    "ML agreement": settings.ML_AGREEMENT_PREFIX,
    "KT HOGAR": settings.TN_HOGAR_PREFIX,
    "KT GASTRO": settings.TN_GASTRO_PREFIX,
}


def default_sources(input_dir: Path | None = None) -> list[SaleSource]:
    return [CsvSaleSource(name, SOURCE_REGISTRY[name], input_dir) for name in settings.SOURCE_ORDER]


def manual_sales(entries: list[ManualEntry] | None) -> list[Sale]:
    """Operator-entered demand as sales with origin MANUAL."""
    return [
        Sale(sku=entry.sku, quantity=entry.quantity, origin=settings.MANUAL_ORIGIN)
        for entry in entries or []
    ]
