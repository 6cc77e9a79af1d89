"""Checkout flow: finalize a draft, persist it, and settle it."""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from pos_engine.core.exceptions import (
    ApiError,
    CustomerRequiredError,
    DayClosedError,
    EmptyInvoiceError,
)
from pos_engine.models.invoice import (
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceType,
    PaymentStatus,
)
from pos_engine.models.payment import PaymentEvent, utc_now
from pos_engine.repositories.daily_aggregate_repository import DailyAggregateRepository
from pos_engine.repositories.day_cycle_repository import DayCycleRepository
from pos_engine.repositories.sales_invoice_repository import SalesInvoiceRepository
from pos_engine.schemas.sales_invoice import InvoiceRecord, SalesInvoiceLineCreate
from pos_engine.services.api_client import ResilientClient
from pos_engine.services.currency import ZERO, to_decimal, to_usd
from pos_engine.services.invoice_number import InvoiceNumberGenerator
from pos_engine.services.settlement import (
    TenderResult,
    apply_payment,
    ensure_sufficient_tender,
    opening_status,
)

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Outcome of a point-of-sale checkout.

    ``secondary_errors`` lists follow-up updates that failed after the
    invoice was saved; the invoice itself stands and those need manual
    reconciliation.
    """

    invoice: Invoice
    record: InvoiceRecord
    tender: TenderResult
    secondary_errors: list[ApiError] = field(default_factory=list)

    @property
    def change_sdg(self) -> Decimal:
        return self.tender.change_sdg


class CheckoutService:
    """Service tying allocation, totals, settlement and submission together."""

    def __init__(
        self,
        client: ResilientClient,
        number_generator: InvoiceNumberGenerator | None = None,
    ):
        self.client = client
        self.day_cycle_repo = DayCycleRepository(client)
        self.invoice_repo = SalesInvoiceRepository(client)
        self.aggregate_repo = DailyAggregateRepository(client)
        self.number_generator = number_generator or InvoiceNumberGenerator()

    def finalize(
        self,
        draft: InvoiceDraft,
        invoice_type: InvoiceType = InvoiceType.SALES,
        category: InvoiceCategory = InvoiceCategory.RETAIL,
        customer_id: str | None = None,
        branch_prefix: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Invoice:
        """Freeze a draft into a numbered invoice.

        The invoice opens as DRAFT with its whole total due, or as PAID when
        the total is zero.

        Raises:
            DayClosedError: The draft's branch has no open day cycle.
            EmptyInvoiceError: The draft has no lines.
            CustomerRequiredError: A wholesale invoice names no customer.
        """
        branch_id = draft.rate_context.branch_id if draft.rate_context else None
        if not branch_id or self.day_cycle_repo.get_current(branch_id) is None:
            raise DayClosedError(branch_id)
        if draft.is_empty:
            raise EmptyInvoiceError()
        if category == InvoiceCategory.WHOLESALE and not customer_id:
            raise CustomerRequiredError()

        totals = draft.totals
        return Invoice(
            invoice_number=self.number_generator.generate(invoice_type, branch_prefix),
            invoice_type=InvoiceType(invoice_type),
            category=InvoiceCategory(category),
            branch_id=branch_id,
            exchange_rate=draft.rate_context.rate_usd_to_sdg,
            lines=tuple(dataclasses.replace(line) for line in draft.lines),
            totals=totals,
            payment_status=opening_status(totals.total_sdg),
            amount_paid_usd=ZERO,
            amount_paid_sdg=ZERO,
            amount_due_usd=totals.total_usd,
            amount_due_sdg=totals.total_sdg,
            created_at=now or utc_now(),
            customer_id=customer_id,
            notes=notes,
        )

    def submit(self, invoice: Invoice, shelf_id: str) -> tuple[Invoice, InvoiceRecord]:
        """Persist a finalized invoice on the server.

        A StockConflictError from the server propagates unchanged: the draft
        is stale and must be rebuilt from fresh batches, not resubmitted.
        """
        record = self.invoice_repo.create_invoice(
            shelf_id=shelf_id,
            invoice_type=invoice.category,
            lines=[
                SalesInvoiceLineCreate(
                    item_id=line.item_id,
                    qty=line.quantity,
                    unit_price_usd=line.unit_price_usd,
                )
                for line in invoice.lines
            ],
            notes=invoice.notes,
            customer_id=invoice.customer_id,
        )
        logger.info("Invoice %s saved as %s", invoice.invoice_number, record.id)

        if record.total_sdg is not None and record.total_sdg != invoice.total_sdg:
            logger.warning(
                "Invoice %s total differs from server: local %s SDG, server %s SDG",
                invoice.invoice_number,
                invoice.total_sdg,
                record.total_sdg,
            )
        return dataclasses.replace(invoice, server_id=record.id), record

    def checkout(
        self,
        draft: InvoiceDraft,
        shelf_id: str,
        cash_sdg: Any = 0,
        card_sdg: Any = 0,
        **finalize_options: Any,
    ) -> CheckoutResult:
        """Settle a retail sale in full at the counter.

        The tender is checked before anything is sent. Once the invoice is
        saved, the shelf's daily totals are updated; a failure there is
        logged and reported but does not undo the sale.
        """
        tender = ensure_sufficient_tender(draft.totals.total_sdg, cash_sdg, card_sdg)
        invoice = self.finalize(draft, **finalize_options)
        invoice, record = self.submit(invoice, shelf_id)

        # Change is handed back in cash, so card covers first.
        card_applied = min(to_decimal(card_sdg or 0), invoice.total_sdg)
        cash_applied = invoice.total_sdg - card_applied
        if invoice.amount_due_sdg > 0:
            invoice = apply_payment(
                invoice,
                PaymentEvent(
                    invoice_id=invoice.id,
                    method=PaymentEvent.method_for(cash_applied, card_applied),
                    cash_amount_sdg=cash_applied,
                    card_amount_sdg=card_applied,
                ),
            )

        result = CheckoutResult(invoice=invoice, record=record, tender=tender)
        try:
            aggregate = self.aggregate_repo.get_or_create(shelf_id)
            self.aggregate_repo.update(
                shelf_id,
                aggregate.plus_sale(cash_applied, card_applied, invoice.item_count),
            )
        except ApiError as exc:
            logger.error(
                "Invoice %s saved but daily totals for shelf %s were not updated: %s",
                invoice.invoice_number,
                shelf_id,
                exc.message,
            )
            result.secondary_errors.append(exc)
        return result

    def record_payment(self, invoice: Invoice, event: PaymentEvent) -> Invoice:
        """Record a payment against a saved invoice.

        The payment is accounted locally first so an invalid amount never
        reaches the server; the server's paid amount and status then win.
        """
        expected = apply_payment(invoice, event)
        record = self.invoice_repo.record_payment(
            invoice.id,
            event.amount_sdg,
            event.method,
            reference=event.reference,
        )
        return self._adopt_record(expected, record)

    def _adopt_record(self, invoice: Invoice, record: InvoiceRecord) -> Invoice:
        if record.payment_status is None:
            return invoice
        try:
            status = PaymentStatus(record.payment_status)
        except ValueError:
            logger.warning("Unknown payment status %r for invoice %s", record.payment_status, record.id)
            return invoice

        if record.payment_status != invoice.payment_status.value:
            logger.warning(
                "Invoice %s: server status %s overrides local %s",
                invoice.invoice_number,
                status.value,
                invoice.payment_status.value,
            )

        paid_sdg = record.paid_sdg
        due_sdg = record.remaining_sdg if record.remaining_sdg is not None else invoice.total_sdg - paid_sdg
        due_sdg = max(due_sdg, ZERO)
        if status == PaymentStatus.PAID:
            paid_usd, due_usd = invoice.total_usd, ZERO
        else:
            paid_usd = min(to_usd(paid_sdg, invoice.exchange_rate), invoice.total_usd)
            due_usd = invoice.total_usd - paid_usd
        return dataclasses.replace(
            invoice,
            payment_status=status,
            amount_paid_sdg=paid_sdg,
            amount_paid_usd=paid_usd,
            amount_due_sdg=due_sdg,
            amount_due_usd=due_usd,
        )
