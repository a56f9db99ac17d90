import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Any
from pydantic import BaseModel, BeforeValidator, Field, field_validator, model_validator


def _as_text(value: Any) -> str:
    """Coerces raw export values (None, NaN, ints read as floats) into clean strings."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


# String field that tolerates None, NaN and numeric SKUs read from CSV exports.
Text = Annotated[str, BeforeValidator(_as_text)]


class ErrorKind(str, Enum):
    """Item-level data problems carried inline on a sale instead of raising."""

    INVALID_QUANTITY = "INVALID_QUANTITY"  # source reported quantity <= 0
    MISSING_SKU = "MISSING_SKU"  # source reported an item with no SKU
    INVALID_SKU = "INVALID_SKU"  # SKU not numeric after normalization
    INVALID_COMBO = "INVALID_COMBO"  # combo multiplier gave a non-positive quantity


class StockWarning(str, Enum):
    """Non-fatal warnings attached to an otherwise valid pick-list row."""

    STOCK_NOT_FOUND = "STOCK_NOT_FOUND"
    STOCK_INSUFFICIENT = "STOCK_INSUFFICIENT"


class SkuError(BaseModel):
    kind: ErrorKind
    original: str = ""
    reported_quantity: float | None = None

    class Config:
        frozen = True

    @property
    def label(self) -> str:
        return f"{self.kind.value}: {self.original}"


class Sale(BaseModel):
    """
    One sold line as reported by a source. `order_id` links the line to the
    order that owns it; loose sales (no order) leave it empty.
    """

    sku: Text = ""
    quantity: float = 0
    origin: Text = ""
    title: Text = ""
    order_id: int | None = None
    error: SkuError | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def display_sku(self) -> str:
        return self.sku if self.error is None else self.error.label

    @property
    def order_key(self) -> tuple[str, int] | None:
        """Owning order, qualified by origin; order ids are only unique per source."""
        if self.order_id is None:
            return None
        return (self.origin, self.order_id)

    @property
    def bucket_key(self) -> tuple[str | None, str]:
        """Aggregation key. Distinct error payloads never share a bucket with each other or a valid SKU."""
        if self.error is None:
            return (None, self.sku)
        return (self.error.kind.value, self.error.original)


class Order(BaseModel):
    """
    A marketplace order. Orders of the same origin sharing a `group_id`
    (the pack / venta key) are one purchase split into several orders.
    Ids are only unique within one origin, so `key` and `group_key` carry it.
    """

    order_id: int
    origin: Text = ""
    group_id: int | None = None
    sale_number: Text = ""
    shipment_id: int | None = None
    created_at: datetime | None = None
    items: list[Sale] = Field(default_factory=list)
    shipping_substatus: str = ""

    @model_validator(mode="after")
    def _link_items(self) -> "Order":
        if self.group_id is None:
            self.group_id = self.order_id
        if not self.sale_number:
            self.sale_number = str(self.group_id)
        if not self.origin and self.items:
            self.origin = self.items[0].origin
        for item in self.items:
            if item.order_id is None:
                item.order_id = self.order_id
            if not item.origin:
                item.origin = self.origin
        return self

    @property
    def key(self) -> tuple[str, int]:
        return (self.origin, self.order_id)

    @property
    def group_key(self) -> tuple[str, int]:
        return (self.origin, self.group_id)


class ComboEntry(BaseModel):
    parent_sku: Text
    component_sku: Text
    multiplier: float


class StockRecord(BaseModel):
    sku: Text
    description: Text = ""
    supplier: Text = ""
    subcategory: Text = ""
    unit: Text = ""
    available_quantity: int = 0

    @field_validator("available_quantity", mode="before")
    @classmethod
    def _coerce_stock(cls, value: Any) -> int:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return 0
        return int(float(value))


class ManualEntry(BaseModel):
    """Operator-entered demand that bypasses the sources."""

    sku: Text
    quantity: float


class SourceResult(BaseModel):
    sales: list[Sale] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)


class SlaRecord(BaseModel):
    status: str = ""
    expected_date: datetime | None = None
    expedited: bool = False


class Demand(BaseModel):
    """Aggregated demand for one bucket (a valid SKU or one distinct error payload)."""

    sku: str
    quantity: float
    error: SkuError | None = None


class PickListItem(BaseModel):
    """
    Defines the data contract for one row of the final pick list.
    Aliases are the column headers used when the list is written to disk.
    """

    sku: str = Field(..., alias="SKU")
    quantity: float = Field(..., ge=0, alias="Quantity")
    description: str = Field(default="", alias="Description")
    supplier: str = Field(default="", alias="Supplier")
    unit: str = Field(default="", alias="Unit")
    available_quantity: int = Field(default=0, alias="Stock")
    subcategory: str = Field(default="", alias="Subcategory")
    warning: StockWarning | None = Field(default=None, alias="Warning")

    class Config:
        populate_by_name = True


class CartItem(BaseModel):
    sku: str
    quantity: float
    description: str = ""
    unit: str = ""


class CartOrder(BaseModel):
    sale_number: str
    created_at: datetime | None = None
    label: str
    items: list[CartItem] = Field(default_factory=list)


class SlaOrder(BaseModel):
    sale_number: str
    item_count: int
    sla_status: str = ""
    sla_expected_date: datetime | None = None


class RunSummary(BaseModel):
    source_counts: dict[str, int] = Field(default_factory=dict)
    failed_sources: list[str] = Field(default_factory=list)
    manual_count: int = 0
    total_sales: int = 0
    excluded_groups: int = 0
    unique_skus: int = 0
    skus_ok: int = 0
    skus_not_found: int = 0
    skus_insufficient: int = 0
    skus_with_error: int = 0
    carts: int = 0
    sla_orders: int = 0

    def log_lines(self) -> list[str]:
        lines = []
        if self.manual_count:
            lines.append(f"Manual: {self.manual_count}")
        if self.excluded_groups:
            lines.append(f"Excluded by SLA: {self.excluded_groups} sales groups")
        lines.append(f"Total: {self.total_sales} sales")
        lines.append(f"Unique SKUs: {self.unique_skus} | OK: {self.skus_ok}")
        lines.append(f"Carts: {self.carts} | Orders with SLA: {self.sla_orders}")
        if self.skus_not_found:
            lines.append(f"⚠️ SKUs not found in stock: {self.skus_not_found}")
        if self.skus_insufficient:
            lines.append(f"⚠️ SKUs with insufficient stock: {self.skus_insufficient}")
        if self.skus_with_error:
            lines.append(f"⚠️ SKUs with errors: {self.skus_with_error}")
        return lines


class PickitResult(BaseModel):
    pick_list: list[PickListItem] = Field(default_factory=list)
    carts: list[CartOrder] = Field(default_factory=list)
    sla_orders: list[SlaOrder] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
