from pos_engine.models.exchange_rate import ExchangeRateContext
from pos_engine.schemas.day_cycle import DayCycleResponse
from pos_engine.services.api_client import ResilientClient


class DayCycleRepository:
    def __init__(self, client: ResilientClient):
        self.client = client

    def get_current_cycle(self, branch_id: str) -> DayCycleResponse | None:
        data = self.client.query("dayCycle.getCurrent", {"branchId": branch_id})
        if not data:
            return None
        if isinstance(data, dict) and "branchId" not in data:
            data = {**data, "branchId": branch_id}
        return DayCycleResponse.model_validate(data)

    def get_current(self, branch_id: str) -> ExchangeRateContext | None:
        """Rate context of the branch's open day, or None when no day is open."""
        cycle = self.get_current_cycle(branch_id)
        if cycle is None or not cycle.is_open:
            return None
        return cycle.to_context()
