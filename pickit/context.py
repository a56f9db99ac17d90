import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from . import settings
from .catalogs import ComboCatalog, StockCatalog, load_combo_catalog, load_stock_catalog
from .sla import end_of_day
from .sources import CsvSlaSource, SaleSource, SlaSource, default_sources

logger = logging.getLogger(__name__)


class PipelineContext:
    """
    Everything one run needs: sources, catalogs, the SLA source and a bounded
    worker pool. Built per run and used as a context manager so the pool is
    shut down when the run ends.
    """

    def __init__(
        self,
        sources: list[SaleSource],
        stock_catalog: StockCatalog,
        combo_catalog: ComboCatalog,
        sla_source: SlaSource | None = None,
        max_workers: int | None = None,
        timezone: str = settings.WAREHOUSE_TIMEZONE,
        fetch_timeout: float | None = None,
        today: date | None = None,
        min_cart_skus: int = settings.MIN_CART_SKUS,
    ):
        self.sources = sources
        self.stock_catalog = stock_catalog
        self.combo_catalog = combo_catalog
        self.sla_source = sla_source
        # One worker per source unless told otherwise.
        self.max_workers = max_workers or max(len(sources), 1)
        self.zone = ZoneInfo(timezone)
        self.fetch_timeout = fetch_timeout
        self.today = today
        self.min_cart_skus = min_cart_skus
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future] = []

    @classmethod
    def from_settings(cls, input_dir: Path | None = None, **kwargs) -> "PipelineContext":
        """
        Builds a context from the configured input folder. Missing catalogs
        raise CatalogUnavailableError before any source is touched.
        """
        input_dir = input_dir or settings.INPUT_DIR
        stock_catalog = load_stock_catalog(input_dir / settings.STOCK_CATALOG_FILENAME)
        combo_catalog = load_combo_catalog(input_dir / settings.COMBO_CATALOG_FILENAME)
        kwargs.setdefault("max_workers", settings.MAX_WORKERS)
        kwargs.setdefault("fetch_timeout", settings.FETCH_TIMEOUT)
        return cls(
            sources=default_sources(input_dir),
            stock_catalog=stock_catalog,
            combo_catalog=combo_catalog,
            sla_source=CsvSlaSource.from_latest(input_dir),
            **kwargs,
        )

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            raise RuntimeError("PipelineContext is not open; use it in a 'with' block.")
        return self._executor

    def submit(self, fn, *args, **kwargs) -> Future:
        """Schedules `fn` on the run's pool and remembers the future for teardown."""
        future = self.executor.submit(fn, *args, **kwargs)
        self._futures.append(future)
        return future

    def __enter__(self) -> "PipelineContext":
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="pickit")
        self._futures = []
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._executor is None:
            return
        # A fetch that outlived FETCH_TIMEOUT cannot be interrupted; leave its
        # thread behind instead of blocking the end of the run on it.
        stalled = [future for future in self._futures if not future.done()]
        if stalled:
            logger.warning(f"⚠️ Abandoning {len(stalled)} unfinished fetches.")
        self._executor.shutdown(wait=not stalled, cancel_futures=True)
        self._executor = None
        self._futures = []

    def cutoff(self) -> datetime:
        """End of the dispatch day (23:59:59 warehouse time)."""
        today = self.today or datetime.now(self.zone).date()
        return end_of_day(today, self.zone)
