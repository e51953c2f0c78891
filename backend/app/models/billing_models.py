from datetime import date, timedelta
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_PRODUCT = "UnknownProduct"


# ── MCP envelopes ─────────────────────────────────────────────────────────────

class MCPToolCallRequest(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class MCPToolCallResponse(BaseModel):
    content: list[dict[str, Any]]


class MCPToolsListResponse(BaseModel):
    tools: list[dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str = "1.0.0"


# ── Billing ───────────────────────────────────────────────────────────────────

class BillingLineItem(BaseModel):
    """One row of DescribeInstanceBill output, keyed by the API's field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    billing_date: str = Field(alias="BillingDate", min_length=1)
    product_code: str | None = Field(default=None, alias="ProductCode")
    pretax_gross_amount: float | None = Field(default=None, alias="PretaxGrossAmount")
    invoice_discount: float | None = Field(default=None, alias="InvoiceDiscount")
    deducted_by_coupons: float | None = Field(default=None, alias="DeductedByCoupons")
    deducted_by_cash_coupons: float | None = Field(default=None, alias="DeductedByCashCoupons")
    deducted_by_prepaid_card: float | None = Field(default=None, alias="DeductedByPrepaidCard")

    @field_validator(
        "pretax_gross_amount",
        "invoice_discount",
        "deducted_by_coupons",
        "deducted_by_cash_coupons",
        "deducted_by_prepaid_card",
        mode="before",
    )
    @classmethod
    def _unparseable_amount_is_none(cls, v: Any) -> float | None:
        # Blank, null or malformed amounts count as zero; the item itself is kept
        if v is None:
            return None
        try:
            return float(v)
        except (TypeError, ValueError):
            return None

    @field_validator("billing_date", "product_code", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @property
    def product_key(self) -> str:
        return self.product_code or UNKNOWN_PRODUCT

    @property
    def original_amount(self) -> float:
        return self.pretax_gross_amount or 0.0

    @property
    def total_discount(self) -> float:
        return (
            (self.invoice_discount or 0.0)
            + (self.deducted_by_coupons or 0.0)
            + (self.deducted_by_cash_coupons or 0.0)
            + (self.deducted_by_prepaid_card or 0.0)
        )

    @property
    def actual_amount(self) -> float:
        return self.original_amount - self.total_discount


class BillingValues(BaseModel):
    original: float = 0.0  # sum of PretaxGrossAmount
    discount: float = 0.0  # sum of all four discount components
    actual: float = 0.0    # sum of per-item (original - discount)

    def add(self, item: BillingLineItem) -> None:
        self.original += item.original_amount
        self.discount += item.total_discount
        self.actual += item.actual_amount


# date -> product code -> bucket
AggregatedBillingData = dict[str, dict[str, BillingValues]]


class DateWindow(BaseModel):
    """Inclusive range of calendar days ending today."""

    start: date
    end: date

    @classmethod
    def last_n_days(cls, days: int, today: date | None = None) -> "DateWindow":
        end = today or date.today()
        return cls(start=end - timedelta(days=days - 1), end=end)

    @staticmethod
    def billing_cycle(day: date) -> str:
        return day.strftime("%Y-%m")

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def billing_cycles(self) -> list[str]:
        return sorted({self.billing_cycle(d) for d in self.days()})


class PageFailure(BaseModel):
    billing_date: str
    page: int
    error: str
