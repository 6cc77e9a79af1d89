"""Payment events recorded against invoices."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    MIXED = "MIXED"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class PaymentEvent:
    """One tender received against an invoice. Events are append-only."""

    invoice_id: str
    method: PaymentMethod
    cash_amount_sdg: Decimal = ZERO
    card_amount_sdg: Decimal = ZERO
    recorded_at: datetime = field(default_factory=utc_now)
    reference: str | None = None

    @property
    def amount_sdg(self) -> Decimal:
        return self.cash_amount_sdg + self.card_amount_sdg

    @staticmethod
    def method_for(cash_sdg: Decimal, card_sdg: Decimal) -> PaymentMethod:
        """Pick the method describing a cash/card split."""
        if cash_sdg > 0 and card_sdg > 0:
            return PaymentMethod.MIXED
        if card_sdg > 0:
            return PaymentMethod.CARD
        return PaymentMethod.CASH
