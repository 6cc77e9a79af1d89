from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pos_engine.models.exchange_rate import ExchangeRateContext
from pos_engine.models.payment import PaymentEvent

ZERO = Decimal("0")


class InvoiceType(str, Enum):
    SALES = "SALES"
    PROCUREMENT = "PROCUREMENT"


class InvoiceCategory(str, Enum):
    WHOLESALE = "WHOLESALE"
    RETAIL = "RETAIL"
    CONSIGNMENT = "CONSIGNMENT"


class PaymentStatus(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    OUTSTANDING = "OUTSTANDING"
    DEFERRED = "DEFERRED"
    SCHEDULED = "SCHEDULED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    VOID = "VOID"


TERMINAL_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.CANCELLED, PaymentStatus.VOID})


class DiscountKind(str, Enum):
    FIXED = "FIXED"
    PERCENTAGE = "PERCENTAGE"


@dataclass(frozen=True)
class Discount:
    """A fixed USD amount or a percentage of the amount it applies to."""

    value: Decimal = ZERO
    kind: DiscountKind = DiscountKind.FIXED

    def __post_init__(self) -> None:
        value = Decimal(str(self.value))
        object.__setattr__(self, "value", value if value > 0 else ZERO)
        object.__setattr__(self, "kind", DiscountKind(self.kind))

    def amount_of(self, base: Decimal) -> Decimal:
        """Unrounded discount on ``base``, capped so it never exceeds it."""
        if base <= 0 or self.value == 0:
            return ZERO
        if self.kind == DiscountKind.PERCENTAGE:
            amount = base * self.value / Decimal("100")
        else:
            amount = self.value
        return min(amount, base)


@dataclass
class InvoiceLineDraft:
    """One item on a draft invoice.

    SDG figures are computed with the rate the line was priced at and are
    only ever recomputed through a quantity update.
    """

    line_id: str
    item_id: str
    quantity: int
    unit_price_usd: Decimal
    unit_price_sdg: Decimal
    line_total_usd: Decimal
    line_total_sdg: Decimal
    rate_usd_to_sdg: Decimal
    batch_id: str | None = None
    discount: Discount | None = None
    name: str | None = None
    expiry_date: date | None = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal_usd: Decimal = ZERO
    subtotal_sdg: Decimal = ZERO
    discount_usd: Decimal = ZERO
    discount_sdg: Decimal = ZERO
    tax_usd: Decimal = ZERO
    tax_sdg: Decimal = ZERO
    total_usd: Decimal = ZERO
    total_sdg: Decimal = ZERO


@dataclass
class InvoiceDraft:
    """An invoice being assembled on screen, before it has a number."""

    rate_context: ExchangeRateContext
    lines: list[InvoiceLineDraft] = field(default_factory=list)
    discount: Discount = field(default_factory=Discount)
    tax_rate: Decimal = ZERO
    totals: InvoiceTotals = field(default_factory=InvoiceTotals)

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class Invoice:
    """A finalized, numbered invoice.

    Lines and totals never change; payment fields change only through the
    settlement reconciler, which returns a new Invoice each time.
    """

    invoice_number: str
    invoice_type: InvoiceType
    category: InvoiceCategory
    branch_id: str
    exchange_rate: Decimal
    lines: tuple[InvoiceLineDraft, ...]
    totals: InvoiceTotals
    payment_status: PaymentStatus
    amount_paid_usd: Decimal
    amount_paid_sdg: Decimal
    amount_due_usd: Decimal
    amount_due_sdg: Decimal
    created_at: datetime
    customer_id: str | None = None
    payments: tuple[PaymentEvent, ...] = ()
    server_id: str | None = None
    notes: str | None = None

    @property
    def total_usd(self) -> Decimal:
        return self.totals.total_usd

    @property
    def total_sdg(self) -> Decimal:
        return self.totals.total_sdg

    @property
    def id(self) -> str:
        """Server id once persisted, the invoice number before that."""
        return self.server_id or self.invoice_number

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)
