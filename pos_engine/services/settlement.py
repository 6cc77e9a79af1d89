"""Tender validation and payment accounting for invoices."""

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pos_engine.core.exceptions import (
    InsufficientTenderError,
    InvalidAmountError,
    InvoiceStateError,
    OverpaymentError,
)
from pos_engine.models.invoice import TERMINAL_STATUSES, Invoice, PaymentStatus
from pos_engine.models.payment import PaymentEvent
from pos_engine.services.currency import ZERO, round_sdg, to_decimal, to_usd

logger = logging.getLogger(__name__)

# Allowed payment status moves. Anything not listed, including every move
# out of PAID, CANCELLED and VOID, is rejected.
ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.DRAFT: frozenset(
        {
            PaymentStatus.CONFIRMED,
            PaymentStatus.OUTSTANDING,
            PaymentStatus.DEFERRED,
            PaymentStatus.PARTIALLY_PAID,
            PaymentStatus.PAID,
        }
    ),
    PaymentStatus.CONFIRMED: frozenset(
        {
            PaymentStatus.OUTSTANDING,
            PaymentStatus.DEFERRED,
            PaymentStatus.SCHEDULED,
            PaymentStatus.PARTIALLY_PAID,
            PaymentStatus.PAID,
        }
    ),
    PaymentStatus.OUTSTANDING: frozenset(
        {PaymentStatus.SCHEDULED, PaymentStatus.PARTIALLY_PAID, PaymentStatus.PAID}
    ),
    PaymentStatus.DEFERRED: frozenset(
        {PaymentStatus.SCHEDULED, PaymentStatus.PARTIALLY_PAID, PaymentStatus.PAID}
    ),
    PaymentStatus.SCHEDULED: frozenset({PaymentStatus.PARTIALLY_PAID, PaymentStatus.PAID}),
    PaymentStatus.PARTIALLY_PAID: frozenset({PaymentStatus.PAID}),
}
CANCELLABLE = frozenset(ALLOWED_TRANSITIONS)
# Reached only by accounting for a payment, never by a bare status change.
PAYMENT_STATUSES = frozenset({PaymentStatus.PARTIALLY_PAID, PaymentStatus.PAID})


@dataclass(frozen=True)
class TenderResult:
    sufficient: bool
    tendered_sdg: Decimal
    change_sdg: Decimal


def _tender_amount(value: Any, label: str) -> Decimal:
    amount = to_decimal(value or 0)
    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(f"{label} amount cannot be negative", amount=amount)
    return amount


def validate_tender(total_due_sdg: Any, cash_sdg: Any = 0, card_sdg: Any = 0) -> TenderResult:
    """Check whether cash plus card covers the amount due.

    Change is reported only when the tender is sufficient and something was
    actually tendered; it is zero otherwise.
    """
    due = to_decimal(total_due_sdg)
    tendered = _tender_amount(cash_sdg, "Cash") + _tender_amount(card_sdg, "Card")
    sufficient = tendered >= due
    change = round_sdg(tendered - due) if sufficient and tendered > 0 else ZERO
    return TenderResult(sufficient=sufficient, tendered_sdg=tendered, change_sdg=change)


def ensure_sufficient_tender(total_due_sdg: Any, cash_sdg: Any = 0, card_sdg: Any = 0) -> TenderResult:
    """validate_tender, raising InsufficientTenderError when the tender falls short."""
    result = validate_tender(total_due_sdg, cash_sdg, card_sdg)
    if not result.sufficient:
        raise InsufficientTenderError(to_decimal(total_due_sdg), result.tendered_sdg)
    return result


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    if target in (PaymentStatus.CANCELLED, PaymentStatus.VOID):
        return current in CANCELLABLE
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def opening_status(total_sdg: Any) -> PaymentStatus:
    """Status of a newly finalized invoice: PAID when nothing is owed, else DRAFT."""
    return PaymentStatus.PAID if to_decimal(total_sdg) == 0 else PaymentStatus.DRAFT


def transition(invoice: Invoice, status: PaymentStatus) -> Invoice:
    """Move an invoice to ``status`` if the state machine allows it.

    PARTIALLY_PAID and PAID are refused here; use apply_payment so the paid
    and due amounts move with the status.
    """
    status = PaymentStatus(status)
    if status in PAYMENT_STATUSES:
        raise InvoiceStateError(
            f"Invoice {invoice.invoice_number} can only become {status.value} by recording a payment",
            current=invoice.payment_status,
            target=status,
        )
    if not can_transition(invoice.payment_status, status):
        raise InvoiceStateError(
            f"Invoice {invoice.invoice_number} cannot move from "
            f"{invoice.payment_status.value} to {status.value}",
            current=invoice.payment_status,
            target=status,
        )
    return dataclasses.replace(invoice, payment_status=status)


def cancel(invoice: Invoice) -> Invoice:
    return transition(invoice, PaymentStatus.CANCELLED)


def apply_payment(invoice: Invoice, event: PaymentEvent) -> Invoice:
    """Account for a payment event and return the updated invoice.

    amount_due = total - amount_paid, never negative. The status becomes
    PARTIALLY_PAID while something remains due and PAID once nothing does.
    Paying more than what is due is rejected rather than silently absorbed.
    """
    if event.invoice_id not in (invoice.server_id, invoice.invoice_number):
        raise InvoiceStateError(
            f"Payment for invoice {event.invoice_id} cannot be applied to {invoice.id}",
            invoice_id=event.invoice_id,
        )
    if invoice.payment_status in TERMINAL_STATUSES:
        raise InvoiceStateError(
            f"Invoice {invoice.invoice_number} is {invoice.payment_status.value} and accepts no payments",
            current=invoice.payment_status,
        )

    cash = _tender_amount(event.cash_amount_sdg, "Cash")
    card = _tender_amount(event.card_amount_sdg, "Card")
    amount = cash + card
    if amount <= 0:
        raise InvalidAmountError("Payment amount must be greater than zero", amount=amount)

    total = invoice.total_sdg
    paid = invoice.amount_paid_sdg + amount
    if paid > total:
        raise OverpaymentError(amount, invoice.amount_due_sdg)

    due = total - paid
    if due == 0:
        status = PaymentStatus.PAID
        paid_usd, due_usd = invoice.total_usd, ZERO
    else:
        status = PaymentStatus.PARTIALLY_PAID
        paid_usd = min(to_usd(paid, invoice.exchange_rate), invoice.total_usd)
        due_usd = invoice.total_usd - paid_usd

    if status != invoice.payment_status and not can_transition(invoice.payment_status, status):
        raise InvoiceStateError(
            f"Invoice {invoice.invoice_number} cannot move from "
            f"{invoice.payment_status.value} to {status.value}",
            current=invoice.payment_status,
            target=status,
        )

    logger.info(
        "Invoice %s: recorded %s SDG (%s), %s SDG remaining",
        invoice.invoice_number,
        amount,
        event.method.value,
        due,
    )
    return dataclasses.replace(
        invoice,
        payment_status=status,
        amount_paid_sdg=paid,
        amount_paid_usd=paid_usd,
        amount_due_sdg=due,
        amount_due_usd=due_usd,
        payments=(*invoice.payments, event),
    )
