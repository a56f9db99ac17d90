# tests/test_stock.py
from pickit.normalizer import classify_ingested, normalize_sale
from pickit.schemas import Demand, ErrorKind, PickListItem, Sale, StockWarning
from pickit.stock import resolve_item, resolve_stock, sort_pick_list


def _demand_for(sale: Sale, quantity: float | None = None) -> Demand:
    return Demand(sku=sale.sku, quantity=sale.quantity if quantity is None else quantity, error=sale.error)


def test_known_sku_is_enriched(stock_catalog):
    item = resolve_item(Demand(sku="100", quantity=3), stock_catalog)

    assert item.description == "Plato hondo"
    assert item.supplier == "Acme"
    assert item.unit == "CAJA"
    assert item.subcategory == "Vajilla"
    assert item.available_quantity == 50
    assert item.warning is None


def test_unknown_sku_is_kept_with_zero_stock(stock_catalog):
    item = resolve_item(Demand(sku="777", quantity=1), stock_catalog)

    assert item.sku == "777"
    assert item.available_quantity == 0
    assert item.warning == StockWarning.STOCK_NOT_FOUND


def test_insufficient_stock_is_a_warning_only(stock_catalog):
    item = resolve_item(Demand(sku="200", quantity=5), stock_catalog)

    assert item.quantity == 5
    assert item.available_quantity == 1
    assert item.warning == StockWarning.STOCK_INSUFFICIENT


def test_missing_sku_uses_title_as_description(stock_catalog):
    sale = classify_ingested(Sale(sku="", quantity=2, title="Set de copas"))

    item = resolve_item(_demand_for(sale), stock_catalog)

    assert item.sku == "MISSING_SKU"
    assert item.description == "Set de copas"
    assert item.warning is None


def test_other_errors_keep_their_tag(stock_catalog):
    sale = normalize_sale(Sale(sku="ABC", quantity=1))

    item = resolve_item(_demand_for(sale), stock_catalog)

    assert item.sku == "INVALID_SKU: ABC"
    assert item.available_quantity == 0


def test_invalid_quantity_never_shows_a_bare_sku(stock_catalog):
    sale = classify_ingested(Sale(sku="100", quantity=-4))

    [item] = resolve_stock([_demand_for(sale)], stock_catalog)

    assert item.sku.startswith(ErrorKind.INVALID_QUANTITY.value)
    assert item.quantity == 0


def test_sort_by_unit_supplier_subcategory_description():
    items = [
        PickListItem(sku="1", quantity=1, unit="UN", supplier="B", subcategory="X", description="b"),
        PickListItem(sku="2", quantity=1, unit="CAJA", supplier="Z", subcategory="Z", description="z"),
        PickListItem(sku="3", quantity=1, unit="UN", supplier="A", subcategory="Y", description="a"),
        PickListItem(sku="4", quantity=1, unit="UN", supplier="B", subcategory="X", description="a"),
        PickListItem(sku="5", quantity=1),
    ]

    assert [i.sku for i in sort_pick_list(items)] == ["5", "2", "3", "4", "1"]


def test_sort_is_case_sensitive_and_stable():
    items = [
        PickListItem(sku="1", quantity=1, unit="un"),
        PickListItem(sku="2", quantity=1, unit="UN"),
        PickListItem(sku="3", quantity=1, unit="UN"),
    ]

    assert [i.sku for i in sort_pick_list(items)] == ["2", "3", "1"]
