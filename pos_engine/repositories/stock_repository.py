from typing import Any

from pos_engine.models.stock import StockBatch
from pos_engine.schemas.stock import BatchResponse
from pos_engine.services.api_client import ResilientClient


class StockRepository:
    def __init__(self, client: ResilientClient):
        self.client = client

    def get_batches(
        self,
        item_id: str,
        warehouse_id: str | None = None,
        shelf_id: str | None = None,
    ) -> list[StockBatch]:
        """Snapshot of an item's batches at one warehouse or shelf."""
        if bool(warehouse_id) == bool(shelf_id):
            raise ValueError("Exactly one of warehouse_id or shelf_id is required")

        params: dict[str, Any] = {"itemId": item_id}
        if warehouse_id:
            params["warehouseId"] = warehouse_id
        else:
            params["shelfId"] = shelf_id

        data = self.client.query("inventory.stock.getBatches", params)
        rows = data.get("data", []) if isinstance(data, dict) else (data or [])
        return [BatchResponse.model_validate(row).to_batch(item_id) for row in rows]
