import logging
import re

from .schemas import ErrorKind, Sale, SkuError

logger = logging.getLogger(__name__)

# Marketplace SKUs sometimes carry prefixes/suffixes such as "KT-1234" or "1234A".
_EDGE_NON_DIGITS = re.compile(r"^[^0-9]*|[^0-9]*$")
_NUMERIC = re.compile(r"[0-9]+")


def classify_ingested(sale: Sale) -> Sale:
    """
    Tags data problems a source reported at ingestion time.
    - quantity <= 0 becomes INVALID_QUANTITY (quantity reset to 0, reported value kept).
    - a blank SKU becomes MISSING_SKU, keeping the item title for the report.
    Sales that already carry an error are returned unchanged.
    """
    if sale.error is not None:
        return sale

    sku = sale.sku.strip()
    if sale.quantity <= 0:
        original = sku or sale.title
        logger.warning(f"⚠️ Invalid quantity ({sale.quantity:g}) from {sale.origin}: {original}")
        error = SkuError(
            kind=ErrorKind.INVALID_QUANTITY,
            original=original,
            reported_quantity=sale.quantity,
        )
        return sale.model_copy(update={"error": error, "quantity": 0.0})

    if not sku:
        logger.warning(f"⚠️ Item without SKU from {sale.origin}: {sale.title}")
        error = SkuError(kind=ErrorKind.MISSING_SKU, original=sale.title)
        return sale.model_copy(update={"error": error})

    return sale


def clean_sku(raw: str) -> str:
    """Trims, cuts at the first space and strips non-digit characters from both ends."""
    sku = raw.strip()
    space_index = sku.find(" ")
    if space_index > 0:
        sku = sku[:space_index]
    return _EDGE_NON_DIGITS.sub("", sku)


def normalize_sale(sale: Sale) -> Sale:
    """
    Cleans the SKU of a valid sale. A SKU that is blank or not purely numeric
    after cleaning is tagged INVALID_SKU with the raw value kept for diagnostics.
    Running it again on its own output changes nothing.
    """
    if sale.error is not None:
        return sale

    sku = clean_sku(sale.sku)
    if not sku or not _NUMERIC.fullmatch(sku):
        logger.warning(f"⚠️ Invalid SKU: '{sale.sku}'")
        error = SkuError(kind=ErrorKind.INVALID_SKU, original=sale.sku.strip())
        return sale.model_copy(update={"error": error})

    if sku == sale.sku:
        return sale
    return sale.model_copy(update={"sku": sku})


def normalize_sales(sales: list[Sale]) -> list[Sale]:
    return [normalize_sale(sale) for sale in sales]
