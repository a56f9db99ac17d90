"""
Service-level (SLA) handling: concurrent SLA lookups, the same-day dispatch
filter and the per-sale SLA report.

Within a sales group (orders sharing a group_id) the first order whose
shipment has an SLA record decides for the whole group.
"""

import logging
from concurrent.futures import wait
from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo

from .schemas import Order, Sale, SlaOrder, SlaRecord

logger = logging.getLogger(__name__)


def fetch_slas(
    sla_source,
    shipment_ids: list[int],
    executor,
    timeout: float | None = None,
) -> dict[int, SlaRecord]:
    """
    Looks up the SLA of every distinct shipment, one task per shipment on the
    given pool (an Executor or a PipelineContext, anything with `submit`).
    Returns only after every task finished (or the timeout hit).
    Lookups that fail or return nothing are left out of the map.
    """
    unique_ids = list(dict.fromkeys(sid for sid in shipment_ids if sid is not None))
    if not unique_ids:
        return {}

    futures = {executor.submit(sla_source.fetch, sid): sid for sid in unique_ids}
    wait(futures, timeout=timeout)

    sla_map: dict[int, SlaRecord] = {}
    for future, shipment_id in futures.items():
        if not future.done():
            future.cancel()
            logger.warning(f"⚠️ SLA lookup timed out for shipment {shipment_id}")
            continue
        try:
            record = future.result()
        except Exception as e:
            logger.error(f"❌ SLA lookup failed for shipment {shipment_id}: {e}")
            continue
        if record is not None:
            sla_map[shipment_id] = record
    return sla_map


def end_of_day(today: date, tz: str | tzinfo) -> datetime:
    """Dispatch cutoff: 23:59:59 of `today` in the warehouse timezone."""
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    return datetime.combine(today, time(23, 59, 59), tzinfo=zone)


def _as_aware(value: datetime, zone: tzinfo | None) -> datetime:
    if value.tzinfo is None and zone is not None:
        return value.replace(tzinfo=zone)
    return value


def group_orders(orders: list[Order]) -> dict[tuple[str, int], list[Order]]:
    """
    Groups orders by (origin, group_id), keeping first-seen group order and
    order within each group. Orders of different sources never share a group.
    """
    groups: dict[tuple[str, int], list[Order]] = {}
    for order in orders:
        groups.setdefault(order.group_key, []).append(order)
    return groups


def deciding_sla(orders: list[Order], sla_map: dict[int, SlaRecord]) -> SlaRecord | None:
    """Returns the SLA of the first order in the group whose shipment has one."""
    for order in orders:
        if order.shipment_id is not None and order.shipment_id in sla_map:
            return sla_map[order.shipment_id]
    return None


def excluded_groups(
    orders: list[Order],
    sla_map: dict[int, SlaRecord],
    cutoff: datetime,
) -> set[tuple[str, int]]:
    """
    Group keys (origin, group_id) whose deciding SLA expects dispatch
    strictly after the cutoff.
    Groups with no SLA, or an SLA without expected date, are kept.
    """
    excluded = set()
    for group_key, group in group_orders(orders).items():
        sla = deciding_sla(group, sla_map)
        if sla is None or sla.expected_date is None:
            continue
        if _as_aware(sla.expected_date, cutoff.tzinfo) > cutoff:
            excluded.add(group_key)
    return excluded


def apply_sla_filter(
    sales: list[Sale],
    orders: list[Order],
    excluded: set[tuple[str, int]],
) -> tuple[list[Sale], list[Order]]:
    """
    Drops the orders of excluded groups and every sale owned by those orders.
    Sales are matched by (origin, order_id), never by object identity.
    """
    if not excluded:
        return sales, orders

    excluded_orders = {order.key for order in orders if order.group_key in excluded}
    kept_sales = [sale for sale in sales if sale.order_key not in excluded_orders]
    kept_orders = [order for order in orders if order.group_key not in excluded]
    return kept_sales, kept_orders


def build_sla_orders(
    orders: list[Order],
    sla_map: dict[int, SlaRecord],
    zone: tzinfo | None = None,
) -> list[SlaOrder]:
    """
    One row per sales group that has a resolvable SLA, sorted by expected
    date ascending with undated rows last. Naive dates sort as `zone` time.
    """
    rows = []
    for group in group_orders(orders).values():
        sla = deciding_sla(group, sla_map)
        if sla is None:
            continue
        rows.append(
            SlaOrder(
                sale_number=group[0].sale_number,
                item_count=sum(len(order.items) for order in group),
                sla_status=sla.status,
                sla_expected_date=_as_aware(sla.expected_date, zone) if sla.expected_date else None,
            )
        )

    dated = sorted(
        (row for row in rows if row.sla_expected_date is not None),
        key=lambda row: row.sla_expected_date,
    )
    undated = [row for row in rows if row.sla_expected_date is None]
    return dated + undated
