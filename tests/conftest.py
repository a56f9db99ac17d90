# tests/conftest.py
from __future__ import annotations

import pytest

from pickit.catalogs import ComboCatalog, StockCatalog
from pickit.schemas import ComboEntry, SlaRecord, SourceResult, StockRecord
from pickit.sources import SaleSource, SlaSource


class StaticSource(SaleSource):
    """Returns a frozen snapshot; every fetch hands out fresh copies."""

    def __init__(self, name: str, result: SourceResult):
        self.name = name
        self._result = result
        self.calls = 0

    def fetch(self) -> SourceResult:
        self.calls += 1
        return self._result.model_copy(deep=True)


class FailingSource(SaleSource):
    def __init__(self, name: str, exc: Exception | None = None):
        self.name = name
        self.exc = exc or ConnectionError("boom")

    def fetch(self) -> SourceResult:
        raise self.exc


class NoneSource(SaleSource):
    def __init__(self, name: str):
        self.name = name

    def fetch(self):
        return None


class DictSlaSource(SlaSource):
    def __init__(self, records: dict[int, SlaRecord], failing: set[int] | None = None):
        self.records = records
        self.failing = failing or set()
        self.requested: list[int] = []

    def fetch(self, shipment_id: int) -> SlaRecord | None:
        self.requested.append(shipment_id)
        if shipment_id in self.failing:
            raise TimeoutError(f"shipment {shipment_id}")
        return self.records.get(shipment_id)


@pytest.fixture
def stock_catalog() -> StockCatalog:
    return StockCatalog(
        [
            StockRecord(sku="100", description="Plato hondo", supplier="Acme", subcategory="Vajilla", unit="CAJA", available_quantity=50),
            StockRecord(sku="200", description="Vaso", supplier="Acme", subcategory="Vidrio", unit="UN", available_quantity=1),
            StockRecord(sku="300", description="Taza", supplier="Bravo", subcategory="Vajilla", unit="UN", available_quantity=10),
            StockRecord(sku="400", description="Cuchillo", supplier="Bravo", subcategory="Cubiertos", unit="UN", available_quantity=8),
            StockRecord(sku="500", description="Tenedor", supplier="Bravo", subcategory="Cubiertos", unit="UN", available_quantity=8),
        ]
    )


@pytest.fixture
def combo_catalog() -> ComboCatalog:
    return ComboCatalog(
        [
            ComboEntry(parent_sku="900", component_sku="400", multiplier=2),
            ComboEntry(parent_sku="900", component_sku="500", multiplier=3),
            ComboEntry(parent_sku="901", component_sku="300", multiplier=0),
        ]
    )


@pytest.fixture
def make_static_source():
    return StaticSource


@pytest.fixture
def make_failing_source():
    return FailingSource


@pytest.fixture
def make_none_source():
    return NoneSource


@pytest.fixture
def make_sla_source():
    return DictSlaSource
