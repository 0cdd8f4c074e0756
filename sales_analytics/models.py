from collections.abc import Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PrivateAttr,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from sales_analytics.config import settings
from sales_analytics.money import is_negative_infinity, round2, to_decimal

_DATE = TypeAdapter(date)
_DATETIME = TypeAdapter(datetime)


def _identifier(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value) or None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _day(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return _DATE.validate_python(text)
        except ValidationError:
            pass
        try:
            return _DATETIME.validate_python(text).date()
        except ValidationError:
            return None
    return None


def _threshold(value: Any) -> Any:
    # minus infinity is the same as no threshold
    return None if is_negative_infinity(value) else value


def _records(value: Any) -> list:
    # non-record entries are dropped; a non-list collapses to no entries
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return []
    return [v for v in value if isinstance(v, (Mapping, BaseModel))]


Identifier = Annotated[Optional[str], BeforeValidator(_identifier)]
Text = Annotated[Optional[str], BeforeValidator(_text)]
Number = Annotated[Optional[Decimal], BeforeValidator(to_decimal)]
Day = Annotated[Optional[date], BeforeValidator(_day)]


# ── Input records ────────────────────────────────────────────────────────────
# Every field is optional and tolerant: missing or ill-typed values become None
# and the engine substitutes its neutral defaults.

class Seller(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Identifier = None
    first_name: Text = None
    last_name: Text = None

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or f"Seller {self.id}"


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: Identifier = None
    id: Identifier = None          # alternate key
    name: Text = None
    purchase_price: Number = None  # unit cost


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    sku: Identifier = None
    sale_price: Number = None
    quantity: Number = None
    discount: Number = None        # percent, 0-100


class PurchaseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    receipt_id: Identifier = None
    seller_id: Identifier = None
    items: Annotated[list[LineItem], BeforeValidator(_records)] = Field(default_factory=list)
    date: Day = None


class SalesDataset(BaseModel):
    sellers: Annotated[list[Seller], BeforeValidator(_records)] = Field(default_factory=list)
    products: Annotated[list[Product], BeforeValidator(_records)] = Field(default_factory=list)
    purchase_records: Annotated[list[PurchaseRecord], BeforeValidator(_records)] = Field(
        default_factory=list
    )


# ── Options ──────────────────────────────────────────────────────────────────

class BonusRates(BaseModel):
    """Share of profit paid as bonus, by rank position."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    first: Decimal = Decimal("0.15")                                     # rank 0
    runner_up: Decimal = Field(Decimal("0.10"), alias="runnerUp")        # ranks 1 and 2
    penultimate: Decimal = Decimal("0.05")                               # rank N-2


class AnalysisOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    # sellers with profit strictly below this are dropped
    min_profit: Annotated[Optional[Decimal], BeforeValidator(_threshold)] = Field(
        None, alias="minProfit"
    )
    # inclusive receipt date window; undated receipts fall outside any window
    date_from: Optional[date] = Field(None, alias="dateFrom")
    date_to: Optional[date] = Field(None, alias="dateTo")
    bonus_rates: BonusRates = Field(default_factory=BonusRates, alias="bonusRates")
    top_products_limit: int = Field(
        default_factory=lambda: settings.TOP_PRODUCTS_LIMIT,
        ge=1,
        alias="topProductsLimit",
    )

    @model_validator(mode="after")
    def _check_window(self) -> "AnalysisOptions":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("dateFrom must not be after dateTo")
        return self

    @property
    def has_window(self) -> bool:
        return self.date_from is not None or self.date_to is not None


# ── Derived ──────────────────────────────────────────────────────────────────

class SellerStat(BaseModel):
    seller_id: str
    name: str
    sales_count: int = 0
    revenue: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")
    # sku -> accumulated quantity, in first-seen order
    products: dict[str, Decimal] = Field(default_factory=dict)

    _finalized: bool = PrivateAttr(default=False)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _ensure_open(self) -> None:
        if self._finalized:
            raise RuntimeError(f"stats for seller '{self.seller_id}' are already finalized")

    def add_receipt(self) -> None:
        self._ensure_open()
        self.sales_count += 1

    def add_line(self, sku: str, quantity: Decimal, revenue: Decimal, profit: Decimal) -> None:
        self._ensure_open()
        self.revenue += revenue
        self.profit += profit
        self.products[sku] = self.products.get(sku, Decimal("0")) + quantity

    def finalize(self) -> "SellerStat":
        """Round the money totals once; no further accumulation is allowed."""
        self._ensure_open()
        self.revenue = round2(self.revenue)
        self.profit = round2(self.profit)
        self._finalized = True
        return self


# ── Response models ──────────────────────────────────────────────────────────

class TopProduct(BaseModel):
    sku: str
    quantity: Decimal


class RankedSeller(BaseModel):
    seller_id: str
    name: str
    sales_count: int
    revenue: Decimal
    profit: Decimal
    bonus: Decimal
    top_products: list[TopProduct]
