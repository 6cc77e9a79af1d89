"""Day-cycle exchange rate context."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pos_engine.services import currency


class DayCycleStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class ExchangeRateContext:
    """The USD to SDG rate of one branch's open business day.

    Passed explicitly to every pricing call; a draft keeps the context it was
    created with for its whole life.
    """

    branch_id: str
    date: date
    rate_usd_to_sdg: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate_usd_to_sdg", currency.validate_rate(self.rate_usd_to_sdg))

    def to_sdg(self, amount_usd: Any) -> Decimal:
        return currency.to_sdg(amount_usd, self.rate_usd_to_sdg)

    def to_usd(self, amount_sdg: Any) -> Decimal:
        return currency.to_usd(amount_sdg, self.rate_usd_to_sdg)
