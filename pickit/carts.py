import logging

from .catalogs import ComboCatalog, StockCatalog
from .combos import expand_sale
from .normalizer import classify_ingested, normalize_sale
from .schemas import CartItem, CartOrder, ErrorKind, Order, Sale
from .sla import group_orders

logger = logging.getLogger(__name__)

MIN_DISTINCT_SKUS = 3


def cart_label(index: int) -> str:
    """
    Spreadsheet-column style label for a zero-based cart index:
    0 -> "A", 25 -> "Z", 26 -> "AA", 701 -> "ZZ", 702 -> "AAA".
    """
    if index < 0:
        raise ValueError(f"cart index must be >= 0, got {index}")

    letters = []
    n = index + 1
    while n > 0:
        n -= 1
        letters.append(chr(ord("A") + n % 26))
        n //= 26
    return "".join(reversed(letters))


def sort_orders(orders: list[Order]) -> list[Order]:
    """Oldest first, undated orders last, ties broken by order id and origin."""
    return sorted(
        orders,
        key=lambda order: (
            order.created_at is None,
            order.created_at.timestamp() if order.created_at is not None else 0.0,
            order.order_id,
            order.origin,
        ),
    )


def _resolved(sale: Sale) -> Sale:
    return normalize_sale(classify_ingested(sale))


def resolved_sku(sale: Sale) -> str:
    """The SKU a cart counts an item under; every item without SKU counts as one."""
    sale = _resolved(sale)
    if sale.error is not None and sale.error.kind == ErrorKind.MISSING_SKU:
        return ErrorKind.MISSING_SKU.value
    return sale.display_sku


def cart_items_for(sale: Sale, combo_catalog: ComboCatalog, stock_catalog: StockCatalog) -> list[CartItem]:
    """Expands one order item on its own and describes each resulting line."""
    items = []
    for line in expand_sale(_resolved(sale), combo_catalog):
        if line.error is None:
            record = stock_catalog.lookup(line.sku)
            items.append(
                CartItem(
                    sku=line.sku,
                    quantity=line.quantity,
                    description=record.description if record else "",
                    unit=record.unit if record else "",
                )
            )
        elif line.error.kind == ErrorKind.MISSING_SKU:
            items.append(
                CartItem(sku=ErrorKind.MISSING_SKU.value, quantity=line.quantity, description=line.error.original)
            )
        else:
            items.append(CartItem(sku=line.error.label, quantity=line.quantity))
    return items


def build_carts(
    orders: list[Order],
    combo_catalog: ComboCatalog,
    stock_catalog: StockCatalog,
    min_distinct_skus: int = MIN_DISTINCT_SKUS,
) -> list[CartOrder]:
    """
    Merges orders of the same sales group into one cart. Only groups with at
    least `min_distinct_skus` distinct SKUs get a cart; labels are handed out
    sequentially in creation order, skipped groups consume no label.
    """
    carts = []
    for group in group_orders(sort_orders(orders)).values():
        distinct = {resolved_sku(item) for order in group for item in order.items}
        if len(distinct) < min_distinct_skus:
            continue

        items = []
        for order in group:
            for item in order.items:
                items.extend(cart_items_for(item, combo_catalog, stock_catalog))

        first = group[0]
        carts.append(
            CartOrder(
                sale_number=first.sale_number,
                created_at=first.created_at,
                label=cart_label(len(carts)),
                items=items,
            )
        )

    logger.info(f"Carts built: {len(carts)}")
    return carts
