from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, Field

from pos_engine.models.invoice import InvoiceCategory
from pos_engine.models.payment import PaymentMethod
from pos_engine.schemas.base import UpperStr, WireDecimal, WireModel


class SalesInvoiceLineCreate(WireModel):
    item_id: str
    qty: int = Field(gt=0)
    unit_price_usd: WireDecimal


class SalesInvoiceCreate(WireModel):
    shelf_id: str
    # The server calls the wholesale/retail category "invoiceType".
    invoice_type: InvoiceCategory
    lines: list[SalesInvoiceLineCreate] = Field(min_length=1)
    customer_id: str | None = None
    notes: str | None = None


class RecordPaymentRequest(WireModel):
    invoice_id: str
    amount_sdg: WireDecimal = Field(gt=0)
    method: PaymentMethod
    reference: str | None = None


class InvoiceRecord(WireModel):
    """Server view of a persisted invoice; the authority on payment state."""

    id: str
    invoice_number: str | None = Field(
        default=None, validation_alias=AliasChoices("invoiceNumber", "number")
    )
    payment_status: UpperStr | None = Field(
        default=None, validation_alias=AliasChoices("paymentStatus", "status")
    )
    total_usd: WireDecimal | None = None
    total_sdg: WireDecimal | None = None
    paid_sdg: WireDecimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("paidSdg", "amountPaidSdg")
    )
    remaining_sdg: WireDecimal | None = Field(
        default=None, validation_alias=AliasChoices("remainingSdg", "amountDueSdg")
    )
    created_at: datetime | None = None
