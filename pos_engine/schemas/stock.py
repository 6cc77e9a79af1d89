from decimal import Decimal

from pydantic import AliasChoices, Field

from pos_engine.models.stock import StockBatch
from pos_engine.schemas.base import WireDate, WireDecimal, WireModel


class BatchResponse(WireModel):
    id: str
    item_id: str | None = None
    batch_number: str | None = None
    qty_remaining: int = Field(
        default=0,
        validation_alias=AliasChoices("qtyRemaining", "quantity", "qty"),
    )
    expiry_date: WireDate | None = None
    unit_cost_usd: WireDecimal = Decimal("0")

    def to_batch(self, item_id: str) -> StockBatch:
        return StockBatch(
            id=self.id,
            item_id=self.item_id or item_id,
            qty_remaining=max(self.qty_remaining, 0),
            expiry_date=self.expiry_date,
            unit_cost_usd=self.unit_cost_usd,
            batch_number=self.batch_number,
        )
