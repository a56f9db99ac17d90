# tests/test_sla.py
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from pickit.schemas import Order, Sale, SlaRecord
from pickit.sla import (
    apply_sla_filter,
    build_sla_orders,
    end_of_day,
    excluded_groups,
    fetch_slas,
)

TZ = ZoneInfo("America/Argentina/Buenos_Aires")
TODAY = date(2026, 10, 19)


@pytest.fixture
def cutoff():
    return end_of_day(TODAY, TZ)


def _order(order_id, group_id=None, shipment_id=None, skus=("100",), created_at=None, origin="ML"):
    return Order(
        order_id=order_id,
        group_id=group_id,
        shipment_id=shipment_id,
        created_at=created_at,
        items=[Sale(sku=sku, quantity=1, origin=origin) for sku in skus],
    )


def test_end_of_day_is_local_23_59_59():
    cutoff = end_of_day(TODAY, "America/Argentina/Buenos_Aires")

    assert cutoff == datetime(2026, 10, 19, 23, 59, 59, tzinfo=TZ)
    assert cutoff.utcoffset() == timedelta(hours=-3)


def test_tomorrow_is_excluded_missing_sla_is_kept_cutoff_is_kept(cutoff):
    orders = [
        _order(1, shipment_id=11),
        _order(2, shipment_id=22),
        _order(3, shipment_id=33),
        _order(4),
    ]
    sla_map = {
        11: SlaRecord(status="on_time", expected_date=datetime(2026, 10, 20, 0, 1, tzinfo=TZ)),
        33: SlaRecord(status="on_time", expected_date=cutoff),
    }

    assert excluded_groups(orders, sla_map, cutoff) == {("ML", 1)}


def test_sla_without_expected_date_is_kept(cutoff):
    orders = [_order(1, shipment_id=11)]

    assert excluded_groups(orders, {11: SlaRecord(status="pending")}, cutoff) == set()


def test_naive_expected_date_is_read_as_warehouse_time(cutoff):
    orders = [_order(1, shipment_id=11)]
    sla_map = {11: SlaRecord(expected_date=datetime(2026, 10, 20, 0, 1))}

    assert excluded_groups(orders, sla_map, cutoff) == {("ML", 1)}


def test_first_order_with_sla_decides_for_the_group(cutoff):
    orders = [
        _order(1, group_id=500),
        _order(2, group_id=500, shipment_id=22),
        _order(3, group_id=500, shipment_id=33),
    ]
    sla_map = {
        22: SlaRecord(expected_date=datetime(2026, 10, 19, 12, 0, tzinfo=TZ)),
        33: SlaRecord(expected_date=datetime(2026, 10, 25, 12, 0, tzinfo=TZ)),
    }

    assert excluded_groups(orders, sla_map, cutoff) == set()


def test_apply_filter_removes_group_orders_and_their_sales():
    orders = [_order(1, group_id=500), _order(2, group_id=500), _order(3)]
    loose = Sale(sku="100", quantity=1, origin="KT HOGAR")
    sales = [item for order in orders for item in order.items] + [loose]

    kept_sales, kept_orders = apply_sla_filter(sales, orders, {("ML", 500)})

    assert [o.order_id for o in kept_orders] == [3]
    assert [s.order_id for s in kept_sales] == [3, None]


def test_apply_filter_matches_by_order_id_not_identity():
    order = _order(1, group_id=500)
    copy_of_item = order.items[0].model_copy()

    kept_sales, _ = apply_sla_filter([copy_of_item], [order], {("ML", 500)})

    assert kept_sales == []


def test_fetch_slas_isolates_failures_and_dedupes(make_sla_source):
    source = make_sla_source(
        {1: SlaRecord(status="a"), 2: SlaRecord(status="b")},
        failing={3},
    )

    with ThreadPoolExecutor(max_workers=4) as executor:
        sla_map = fetch_slas(source, [1, 2, 2, 3, 4], executor)

    assert sla_map == {1: SlaRecord(status="a"), 2: SlaRecord(status="b")}
    assert sorted(source.requested) == [1, 2, 3, 4]


def test_sla_orders_sorted_by_expected_date_undated_last():
    orders = [
        _order(1, group_id=10, shipment_id=1, skus=("100", "200")),
        _order(2, group_id=10, shipment_id=2),
        _order(3, shipment_id=3),
        _order(4, shipment_id=4),
        _order(5),
    ]
    sla_map = {
        1: SlaRecord(status="late", expected_date=datetime(2026, 10, 21, tzinfo=TZ)),
        3: SlaRecord(status="pending"),
        4: SlaRecord(status="on_time", expected_date=datetime(2026, 10, 20, tzinfo=TZ)),
    }

    rows = build_sla_orders(orders, sla_map)

    assert [(r.sale_number, r.item_count, r.sla_status) for r in rows] == [
        ("4", 1, "on_time"),
        ("10", 3, "late"),
        ("3", 1, "pending"),
    ]


def test_same_order_id_in_another_source_is_not_excluded(cutoff):
    ml_order = _order(1, shipment_id=11)
    store_order = _order(1, skus=("300", "400", "500"), origin="KT HOGAR")
    orders = [ml_order, store_order]
    sales = [item for order in orders for item in order.items]
    sla_map = {11: SlaRecord(expected_date=datetime(2026, 10, 21, 12, 0, tzinfo=TZ))}

    excluded = excluded_groups(orders, sla_map, cutoff)
    kept_sales, kept_orders = apply_sla_filter(sales, orders, excluded)

    assert excluded == {("ML", 1)}
    assert [o.origin for o in kept_orders] == ["KT HOGAR"]
    assert [(s.origin, s.sku) for s in kept_sales] == [("KT HOGAR", "300"), ("KT HOGAR", "400"), ("KT HOGAR", "500")]


def test_sla_orders_mix_naive_and_aware_dates():
    orders = [_order(1, shipment_id=1), _order(2, shipment_id=2)]
    sla_map = {
        1: SlaRecord(status="a", expected_date=datetime(2026, 10, 20, 10, 0)),
        2: SlaRecord(status="b", expected_date=datetime(2026, 10, 20, 9, 0, tzinfo=TZ)),
    }

    rows = build_sla_orders(orders, sla_map, TZ)

    assert [r.sale_number for r in rows] == ["2", "1"]
    assert rows[1].sla_expected_date == datetime(2026, 10, 20, 10, 0, tzinfo=TZ)
