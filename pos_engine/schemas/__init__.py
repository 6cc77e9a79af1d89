from pos_engine.schemas.daily_aggregate import DailyAggregateResponse, DailyAggregateTotals
from pos_engine.schemas.day_cycle import DayCycleResponse
from pos_engine.schemas.sales_invoice import (
    InvoiceRecord,
    RecordPaymentRequest,
    SalesInvoiceCreate,
    SalesInvoiceLineCreate,
)
from pos_engine.schemas.stock import BatchResponse

__all__ = [
    "BatchResponse",
    "DailyAggregateResponse",
    "DailyAggregateTotals",
    "DayCycleResponse",
    "InvoiceRecord",
    "RecordPaymentRequest",
    "SalesInvoiceCreate",
    "SalesInvoiceLineCreate",
]
