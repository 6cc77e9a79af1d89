from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def _to_date(v: Any) -> Any:
    # The server sends ISO timestamps ("2026-11-01T00:00:00.000Z") for calendar dates.
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and len(v) > 10:
        return v[:10]
    return v


def _to_upper_str(v: Any) -> Any:
    if v is None:
        return v
    return str(v).strip().upper()


# Decimals travel as JSON numbers, matching what the server expects.
WireDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
WireDate = Annotated[date, BeforeValidator(_to_date)]
UpperStr = Annotated[str, BeforeValidator(_to_upper_str)]


class WireModel(BaseModel):
    """Base for server payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
