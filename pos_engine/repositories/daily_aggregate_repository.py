from pos_engine.schemas.daily_aggregate import DailyAggregateResponse, DailyAggregateTotals
from pos_engine.services.api_client import ResilientClient


class DailyAggregateRepository:
    """Per-shelf running totals of the current day's retail sales."""

    def __init__(self, client: ResilientClient):
        self.client = client

    def get_or_create(self, shelf_id: str) -> DailyAggregateResponse:
        data = self.client.query("sales.dailyAggregate.getOrCreate", {"shelfId": shelf_id})
        return DailyAggregateResponse.model_validate(data or {})

    def update(self, shelf_id: str, totals: DailyAggregateTotals) -> DailyAggregateResponse:
        data = self.client.mutation(
            "sales.dailyAggregate.update",
            {"shelfId": shelf_id, **totals.to_wire()},
        )
        return DailyAggregateResponse.model_validate(data or {})
