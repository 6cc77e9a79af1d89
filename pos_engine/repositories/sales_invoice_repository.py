from collections.abc import Iterable
from decimal import Decimal

from pos_engine.models.invoice import InvoiceCategory
from pos_engine.models.payment import PaymentMethod
from pos_engine.schemas.sales_invoice import (
    InvoiceRecord,
    RecordPaymentRequest,
    SalesInvoiceCreate,
    SalesInvoiceLineCreate,
)
from pos_engine.services.api_client import ResilientClient


class SalesInvoiceRepository:
    def __init__(self, client: ResilientClient):
        self.client = client

    def create_invoice(
        self,
        shelf_id: str,
        invoice_type: InvoiceCategory,
        lines: Iterable[SalesInvoiceLineCreate],
        notes: str | None = None,
        customer_id: str | None = None,
    ) -> InvoiceRecord:
        """Persist an invoice. The server decrements stock and owns the totals."""
        payload = SalesInvoiceCreate(
            shelf_id=shelf_id,
            invoice_type=invoice_type,
            lines=list(lines),
            notes=notes,
            customer_id=customer_id,
        )
        data = self.client.mutation("sales.salesInvoices.create", payload.to_wire())
        return InvoiceRecord.model_validate(data)

    def get_invoice(self, invoice_id: str) -> InvoiceRecord:
        data = self.client.query("sales.salesInvoices.getById", {"id": invoice_id})
        return InvoiceRecord.model_validate(data)

    def void_invoice(self, invoice_id: str, reason: str | None = None) -> InvoiceRecord:
        body: dict[str, str] = {"id": invoice_id}
        if reason:
            body["reason"] = reason
        data = self.client.mutation("sales.salesInvoices.void", body)
        return InvoiceRecord.model_validate(data)

    def record_payment(
        self,
        invoice_id: str,
        amount_sdg: Decimal,
        method: PaymentMethod,
        reference: str | None = None,
    ) -> InvoiceRecord:
        payload = RecordPaymentRequest(
            invoice_id=invoice_id,
            amount_sdg=amount_sdg,
            method=method,
            reference=reference,
        )
        data = self.client.mutation("sales.salesInvoices.recordPayment", payload.to_wire())
        return InvoiceRecord.model_validate(data)
