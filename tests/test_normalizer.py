# tests/test_normalizer.py
import pytest

from pickit.normalizer import classify_ingested, clean_sku, normalize_sale, normalize_sales
from pickit.schemas import ErrorKind, Sale


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1234", "1234"),
        ("  1234  ", "1234"),
        ("1234 XL rojo", "1234"),
        ("KT-1234", "1234"),
        ("1234A", "1234"),
        ("#00123#", "00123"),
        ("12A34", "12A34"),
        ("ABC", ""),
        ("", ""),
    ],
)
def test_clean_sku(raw, expected):
    assert clean_sku(raw) == expected


def test_non_positive_quantity_is_tagged_at_ingestion():
    sale = classify_ingested(Sale(sku="1234", quantity=-2, origin="ML", title="Mate"))

    assert sale.error.kind == ErrorKind.INVALID_QUANTITY
    assert sale.error.original == "1234"
    assert sale.error.reported_quantity == -2
    assert sale.quantity == 0
    assert sale.display_sku == "INVALID_QUANTITY: 1234"


def test_zero_quantity_without_sku_keeps_title():
    sale = classify_ingested(Sale(sku="", quantity=0, origin="ML", title="Mate"))

    assert sale.error.kind == ErrorKind.INVALID_QUANTITY
    assert sale.error.original == "Mate"


def test_blank_sku_becomes_missing_sku_with_title():
    sale = classify_ingested(Sale(sku="   ", quantity=2, origin="ML", title="Set de copas"))

    assert sale.error.kind == ErrorKind.MISSING_SKU
    assert sale.error.original == "Set de copas"
    assert sale.quantity == 2


def test_non_numeric_sku_becomes_invalid_sku():
    sale = normalize_sale(Sale(sku="ABC-X", quantity=1))

    assert sale.error.kind == ErrorKind.INVALID_SKU
    assert sale.error.original == "ABC-X"


def test_valid_sku_is_cleaned():
    sale = normalize_sale(Sale(sku=" KT1234 pack", quantity=1))

    assert sale.is_valid
    assert sale.sku == "1234"


def test_normalizer_does_not_mutate_input():
    original = Sale(sku="KT1234", quantity=1)
    normalize_sale(original)

    assert original.sku == "KT1234"


def test_classification_is_idempotent():
    sales = [
        classify_ingested(Sale(sku="1234", quantity=-1)),
        classify_ingested(Sale(sku="", quantity=1, title="Mate")),
        Sale(sku="ABC", quantity=1),
        Sale(sku="KT-55 x", quantity=1),
    ]
    once = normalize_sales(sales)
    twice = normalize_sales([classify_ingested(s) for s in once])

    assert [s.model_dump() for s in twice] == [s.model_dump() for s in once]


def test_sku_that_looks_like_a_tag_is_not_treated_as_one():
    sale = normalize_sale(Sale(sku="INVALID_SKU:12", quantity=1))

    # cleaned to "12" and accepted: tags live in `error`, never in the SKU text
    assert sale.is_valid
    assert sale.sku == "12"
