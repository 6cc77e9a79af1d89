from pos_engine.models.exchange_rate import DayCycleStatus, ExchangeRateContext
from pos_engine.models.invoice import (
    Discount,
    DiscountKind,
    Invoice,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceLineDraft,
    InvoiceTotals,
    InvoiceType,
    PaymentStatus,
)
from pos_engine.models.payment import PaymentEvent, PaymentMethod
from pos_engine.models.stock import CatalogItem, StockBatch

__all__ = [
    "DayCycleStatus",
    "Discount",
    "DiscountKind",
    "ExchangeRateContext",
    "Invoice",
    "InvoiceCategory",
    "InvoiceDraft",
    "InvoiceLineDraft",
    "InvoiceTotals",
    "InvoiceType",
    "PaymentEvent",
    "PaymentMethod",
    "PaymentStatus",
    "CatalogItem",
    "StockBatch",
]
