from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class StockBatch:
    """Snapshot of one stock batch as reported by the inventory server."""

    id: str
    item_id: str
    qty_remaining: int
    expiry_date: date | None = None
    unit_cost_usd: Decimal = Decimal("0")
    batch_number: str | None = None


@dataclass(frozen=True)
class CatalogItem:
    """A sellable item with its wholesale and retail USD prices."""

    id: str
    name: str
    wholesale_price_usd: Decimal
    retail_price_usd: Decimal
    sku: str | None = None
    unit: str | None = None
