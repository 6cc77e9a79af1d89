from pos_engine.repositories.daily_aggregate_repository import DailyAggregateRepository
from pos_engine.repositories.day_cycle_repository import DayCycleRepository
from pos_engine.repositories.sales_invoice_repository import SalesInvoiceRepository
from pos_engine.repositories.stock_repository import StockRepository

__all__ = [
    "DailyAggregateRepository",
    "DayCycleRepository",
    "SalesInvoiceRepository",
    "StockRepository",
]
