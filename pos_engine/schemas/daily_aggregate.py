from decimal import Decimal

from pos_engine.schemas.base import WireDecimal, WireModel


class DailyAggregateTotals(WireModel):
    cash_total_sdg: WireDecimal = Decimal("0")
    card_total_sdg: WireDecimal = Decimal("0")
    item_count: int = 0
    transaction_count: int = 0

    def plus_sale(self, cash_sdg: Decimal, card_sdg: Decimal, item_count: int) -> "DailyAggregateTotals":
        """Totals after one more sale on the shelf."""
        return DailyAggregateTotals(
            cash_total_sdg=self.cash_total_sdg + cash_sdg,
            card_total_sdg=self.card_total_sdg + card_sdg,
            item_count=self.item_count + item_count,
            transaction_count=self.transaction_count + 1,
        )


class DailyAggregateResponse(DailyAggregateTotals):
    id: str | None = None
    shelf_id: str | None = None
