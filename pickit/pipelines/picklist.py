import logging
from concurrent.futures import wait
from pathlib import Path
from pydantic import ValidationError

from pickit import settings
from pickit.carts import build_carts, sort_orders
from pickit.combos import expand_sales
from pickit.context import PipelineContext
from pickit.demand import aggregate_demand
from pickit.errors import NoDemandError
from pickit.normalizer import classify_ingested, normalize_sales
from pickit.pipeline import DataPipeline
from pickit.schemas import ManualEntry, PickitResult, RunSummary, SourceResult, StockWarning
from pickit.sla import apply_sla_filter, build_sla_orders, excluded_groups, fetch_slas
from pickit.sources import manual_sales
from pickit.stock import resolve_stock, sort_pick_list

logger = logging.getLogger(__name__)


class PickitPipeline(DataPipeline):
    """
    Consolidates every source into one pick list, packing carts and an SLA
    report. Only the source fetches and the SLA lookups run concurrently;
    every other step runs on the merged snapshot in a single thread.
    """

    def __init__(
        self,
        context: PipelineContext,
        manual_entries: list[ManualEntry] | None = None,
        same_day: bool = False,
        test_mode: bool = False,
        output_dir: Path | None = None,
    ):
        super().__init__(settings.OUTPUT_FILENAME_BASE, test_mode=test_mode, output_dir=output_dir)
        self.context = context
        self.manual_entries = manual_entries or []
        self.same_day = same_day
        self.summary = RunSummary()

    def fetch_sources(self) -> list[SourceResult]:
        """
        Runs every source on the context's pool and waits for all of them.
        Results are merged only after the join, in registration order; a source
        that raises, times out or returns nothing contributes an empty result.
        """
        futures = [
            (source, self.context.submit(source.fetch))
            for source in self.context.sources
        ]
        wait([future for _, future in futures], timeout=self.context.fetch_timeout)

        results = []
        for source, future in futures:
            result = None
            if not future.done():
                future.cancel()
                logger.error(f"❌ Source {source.name} timed out.")
            else:
                try:
                    result = future.result()
                except Exception as e:
                    logger.error(f"❌ Source {source.name} failed: {e}")

            if result is None:
                self.status_summary[source.name] = None
                self.summary.failed_sources.append(source.name)
                results.append(SourceResult())
                continue

            self.status_summary[source.name] = len(result.sales)
            self.summary.source_counts[source.name] = len(result.sales)
            results.append(result)
        return results

    def extract(self) -> SourceResult:
        logger.info(f"Dispatch mode: {'same day (until 23:59:59)' if self.same_day else 'no limit'}")
        logger.info("--- Fetching sales from all sources ---")

        sales = []
        orders = []
        for result in self.fetch_sources():
            sales.extend(result.sales)
            orders.extend(result.orders)

        if self.manual_entries:
            sales.extend(manual_sales(self.manual_entries))
            self.summary.manual_count = len(self.manual_entries)
            logger.info(f"Manual entries added: {len(self.manual_entries)}")

        if not sales:
            raise NoDemandError()

        # Order items are classified too, so carts see the same tags as the pick list.
        sales = [classify_ingested(sale) for sale in sales]
        orders = [
            order.model_copy(update={"items": [classify_ingested(item) for item in order.items]})
            for order in orders
        ]

        logger.info(f"Consolidated: {len(sales)} sales, {len(orders)} orders")
        return SourceResult(sales=sales, orders=orders)

    def transform(self, raw_data: SourceResult) -> PickitResult | None:
        sales, orders = raw_data.sales, raw_data.orders
        ctx = self.context

        # --- 1. SLA lookups ---
        sla_map = {}
        if ctx.sla_source is not None:
            shipment_ids = [order.shipment_id for order in orders if order.shipment_id is not None]
            if shipment_ids:
                logger.info(f"Fetching SLAs for {len(set(shipment_ids))} shipments...")
                sla_map = fetch_slas(ctx.sla_source, shipment_ids, ctx, ctx.fetch_timeout)
                logger.info(f"SLAs found: {len(sla_map)}")

        # --- 2. Same-day filter ---
        if self.same_day and sla_map:
            excluded = excluded_groups(orders, sla_map, ctx.cutoff())
            if excluded:
                sales, orders = apply_sla_filter(sales, orders, excluded)
                self.summary.excluded_groups = len(excluded)
                logger.info(f"SLA same-day filter: {len(excluded)} sales groups excluded")

        # --- 3. Normalize SKUs ---
        logger.info("--- Normalizing SKUs ---")
        sales = normalize_sales(sales)
        orders = [order.model_copy(update={"items": normalize_sales(order.items)}) for order in orders]

        # --- 4. Expand combos and aggregate ---
        logger.info("--- Expanding combos and aggregating by SKU ---")
        demand = aggregate_demand(expand_sales(sales, ctx.combo_catalog))
        logger.info(f"Unique SKUs: {len(demand)}")

        # --- 5. Resolve stock and sort ---
        try:
            pick_list = sort_pick_list(resolve_stock(demand, ctx.stock_catalog))
            sorted_orders = sort_orders(orders)
            carts = build_carts(sorted_orders, ctx.combo_catalog, ctx.stock_catalog, ctx.min_cart_skus)
            sla_orders = build_sla_orders(sorted_orders, sla_map, ctx.zone)
        except ValidationError as e:
            logger.error("❌ Data validation failed!")
            logger.error(e)
            return None

        # --- 6. Summary ---
        summary = self.summary
        summary.total_sales = len(sales)
        summary.unique_skus = len(demand)
        summary.skus_with_error = sum(1 for bucket in demand if bucket.error is not None)
        summary.skus_not_found = sum(1 for item in pick_list if item.warning == StockWarning.STOCK_NOT_FOUND)
        summary.skus_insufficient = sum(1 for item in pick_list if item.warning == StockWarning.STOCK_INSUFFICIENT)
        summary.skus_ok = (
            summary.unique_skus - summary.skus_with_error - summary.skus_not_found - summary.skus_insufficient
        )
        summary.carts = len(carts)
        summary.sla_orders = len(sla_orders)

        return PickitResult(pick_list=pick_list, carts=carts, sla_orders=sla_orders, summary=summary)
