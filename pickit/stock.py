import logging

from .catalogs import StockCatalog
from .schemas import Demand, ErrorKind, PickListItem, StockWarning

logger = logging.getLogger(__name__)


def resolve_item(demand: Demand, stock_catalog: StockCatalog) -> PickListItem:
    """
    Joins one demand bucket against the stock catalog.
    Error buckets skip the lookup; missing or short stock only adds a warning.
    """
    if demand.error is not None:
        if demand.error.kind == ErrorKind.MISSING_SKU:
            # The title travels as the description so the picker can identify the item.
            return PickListItem(
                sku=ErrorKind.MISSING_SKU.value,
                quantity=demand.quantity,
                description=demand.error.original,
            )
        return PickListItem(sku=demand.error.label, quantity=demand.quantity)

    record = stock_catalog.lookup(demand.sku)
    if record is None:
        logger.warning(f"⚠️ SKU {demand.sku} not found in stock catalog")
        return PickListItem(
            sku=demand.sku,
            quantity=demand.quantity,
            warning=StockWarning.STOCK_NOT_FOUND,
        )

    warning = None
    if record.available_quantity < demand.quantity:
        logger.warning(
            f"⚠️ SKU {demand.sku} insufficient stock (requested: {demand.quantity:g}, available: {record.available_quantity})"
        )
        warning = StockWarning.STOCK_INSUFFICIENT

    return PickListItem(
        sku=demand.sku,
        quantity=demand.quantity,
        description=record.description,
        supplier=record.supplier,
        unit=record.unit,
        available_quantity=record.available_quantity,
        subcategory=record.subcategory,
        warning=warning,
    )


def resolve_stock(demand: list[Demand], stock_catalog: StockCatalog) -> list[PickListItem]:
    return [resolve_item(bucket, stock_catalog) for bucket in demand]


def sort_pick_list(items: list[PickListItem]) -> list[PickListItem]:
    """
    Orders the pick list by unit, supplier, subcategory and description.
    The sort is stable, so ties keep aggregation order.
    """
    return sorted(
        items,
        key=lambda item: (
            item.unit or "",
            item.supplier or "",
            item.subcategory or "",
            item.description or "",
        ),
    )
