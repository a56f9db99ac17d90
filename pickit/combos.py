"""
Combo (bill of materials) expansion.

Expansion is single-level: a component that is itself a combo is NOT expanded
again. Nested combos are a known limitation of the catalog format.
"""

import logging

from .catalogs import ComboCatalog
from .normalizer import normalize_sale
from .schemas import ComboEntry, ErrorKind, Sale, SkuError

logger = logging.getLogger(__name__)


def _invalid_component(sale: Sale, component: ComboEntry, quantity: float, reason: str) -> Sale:
    logger.warning(f"⚠️ Invalid combo {sale.sku} -> '{component.component_sku}' ({reason})")
    error = SkuError(
        kind=ErrorKind.INVALID_COMBO,
        original=component.component_sku or sale.sku,
        reported_quantity=quantity,
    )
    return sale.model_copy(update={"sku": component.component_sku, "quantity": 0.0, "error": error})


def expand_sale(sale: Sale, combo_catalog: ComboCatalog) -> list[Sale]:
    """
    Replaces a combo sale with one sale per component (quantity * multiplier).
    Component SKUs get the same cleaning as sold SKUs. A component that is
    blank, not numeric after cleaning, or whose expanded quantity is not
    positive is emitted as an INVALID_COMBO sale. A blank component is
    reported under the parent SKU.
    """
    if sale.error is not None:
        return [sale]

    components = combo_catalog.lookup(sale.sku)
    if not components:
        return [sale]

    expanded = []
    for component in components:
        quantity = sale.quantity * component.multiplier
        if quantity <= 0:
            expanded.append(_invalid_component(sale, component, quantity, f"multiplier {component.multiplier:g}"))
            continue

        line = normalize_sale(sale.model_copy(update={"sku": component.component_sku, "quantity": quantity}))
        if line.error is not None:
            expanded.append(_invalid_component(sale, component, quantity, "bad component SKU"))
            continue
        expanded.append(line)
    return expanded


def expand_sales(sales: list[Sale], combo_catalog: ComboCatalog) -> list[Sale]:
    expanded = []
    for sale in sales:
        expanded.extend(expand_sale(sale, combo_catalog))
    return expanded
