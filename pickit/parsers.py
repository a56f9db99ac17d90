import logging
import math
from datetime import datetime, tzinfo
from typing import Any
import pandas as pd

from .schemas import Order, Sale, SlaRecord, SourceResult

logger = logging.getLogger(__name__)

# Minimum columns an order export must carry; the rest are optional.
REQUIRED_ORDER_COLUMNS = ["sku", "quantity"]
OPTIONAL_ORDER_COLUMNS = [
    "order_id",
    "pack_id",
    "shipment_id",
    "created_at",
    "title",
    "sale_number",
    "substatus",
    "tags",
]
REQUIRED_SLA_COLUMNS = ["shipment_id"]

TRUE_VALUES = {"1", "true", "yes", "y", "turbo"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value)) or str(value).strip() == ""


def _to_int(value: Any) -> int | None:
    if _is_blank(value):
        return None
    try:
        return int(str(value).strip().split(".")[0])
    except ValueError:
        return None


def _to_float(value: Any) -> float:
    if _is_blank(value):
        return 0.0
    try:
        return float(str(value).strip().replace(",", "."))
    except ValueError:
        return 0.0


def parse_datetime(value: Any, zone: tzinfo | None = None) -> datetime | None:
    """
    Parses an ISO-8601 timestamp. Naive values are read as warehouse-local
    time. Unparseable values are logged and returned as None.
    """
    if _is_blank(value):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"⚠️ Could not parse date: {value}")
        return None
    if parsed.tzinfo is None and zone is not None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def _has_tag(value: Any, tag: str) -> bool:
    if _is_blank(value):
        return False
    tags = str(value).replace(";", ",").replace(" ", ",").split(",")
    return tag in (t.strip().lower() for t in tags)


def parse_orders_export(df: pd.DataFrame, origin: str, zone: tzinfo | None = None) -> SourceResult:
    """
    Turns an order export (one row per sold line) into sales and orders.
    - Rows without order_id are loose sales (e.g. stores that do not report packs).
    - Rows sharing an order_id are the items of one order, in file order.
    - Orders tagged 'delivered' are skipped.
    Every order item is also part of the returned sales.
    """
    missing = [col for col in REQUIRED_ORDER_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"{origin} export is missing columns: {missing}")

    df = df.copy()
    for col in OPTIONAL_ORDER_COLUMNS:
        if col not in df.columns:
            df[col] = None

    sales: list[Sale] = []
    orders: dict[int, Order] = {}
    skipped: set[int] = set()

    for row in df.to_dict("records"):
        order_id = _to_int(row["order_id"])
        if order_id is not None and order_id in skipped:
            continue

        sale = Sale(
            sku=row["sku"],
            quantity=_to_float(row["quantity"]),
            origin=origin,
            title=row["title"],
            order_id=order_id,
        )

        if order_id is None:
            sales.append(sale)
            continue

        if order_id not in orders:
            if _has_tag(row["tags"], "delivered"):
                skipped.add(order_id)
                continue
            orders[order_id] = Order(
                order_id=order_id,
                origin=origin,
                group_id=_to_int(row["pack_id"]),
                sale_number=row["sale_number"] if not _is_blank(row["sale_number"]) else "",
                shipment_id=_to_int(row["shipment_id"]),
                created_at=parse_datetime(row["created_at"], zone),
                shipping_substatus="" if _is_blank(row["substatus"]) else str(row["substatus"]),
            )

        orders[order_id].items.append(sale)
        sales.append(sale)

    if skipped:
        logger.info(f"  > Skipped {len(skipped)} delivered orders from {origin}.")

    return SourceResult(sales=sales, orders=list(orders.values()))


def parse_sla_export(df: pd.DataFrame, zone: tzinfo | None = None) -> dict[int, SlaRecord]:
    """Reads an SLA export (shipment_id, status, expected_date, expedited) keyed by shipment id."""
    missing = [col for col in REQUIRED_SLA_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"SLA export is missing columns: {missing}")

    records: dict[int, SlaRecord] = {}
    for row in df.to_dict("records"):
        shipment_id = _to_int(row.get("shipment_id"))
        if shipment_id is None:
            continue
        status = row.get("status")
        records[shipment_id] = SlaRecord(
            status="" if _is_blank(status) else str(status),
            expected_date=parse_datetime(row.get("expected_date"), zone),
            expedited=str(row.get("expedited", "")).strip().lower() in TRUE_VALUES,
        )
    return records
