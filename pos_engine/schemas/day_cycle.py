from pydantic import AliasChoices, Field

from pos_engine.models.exchange_rate import DayCycleStatus, ExchangeRateContext
from pos_engine.schemas.base import UpperStr, WireDate, WireDecimal, WireModel


class DayCycleResponse(WireModel):
    id: str | None = None
    branch_id: str
    date: WireDate = Field(validation_alias=AliasChoices("date", "businessDate", "openedAt"))
    exchange_rate_usd_sdg: WireDecimal
    status: UpperStr = DayCycleStatus.OPEN.value

    @property
    def is_open(self) -> bool:
        return self.status == DayCycleStatus.OPEN.value

    def to_context(self) -> ExchangeRateContext:
        return ExchangeRateContext(
            branch_id=self.branch_id,
            date=self.date,
            rate_usd_to_sdg=self.exchange_rate_usd_sdg,
        )
