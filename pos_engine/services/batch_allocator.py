"""Expiry-ordered stock batch selection for a draft invoice line."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from pos_engine.core.config import settings
from pos_engine.core.exceptions import InsufficientStockError, InvalidQuantityError, NearExpiryWarning
from pos_engine.models.stock import StockBatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allocation:
    """Result of an allocation: the batch to draw from, plus any advisory."""

    batch_id: str
    available_qty: int
    days_until_expiry: int | None = None
    warning: NearExpiryWarning | None = None


def sort_batches(batches: Iterable[StockBatch]) -> list[StockBatch]:
    """Return usable batches, earliest expiry first and undated batches last.

    Batches with nothing remaining are dropped. Ties keep their input order.
    """
    usable = [b for b in batches if b.qty_remaining > 0]
    return sorted(usable, key=lambda b: (b.expiry_date is None, b.expiry_date or date.max))


def days_until_expiry(batch: StockBatch, today: date | None = None) -> int | None:
    """Whole days from ``today`` to the batch's expiry; negative once expired."""
    if batch.expiry_date is None:
        return None
    return (batch.expiry_date - (today or date.today())).days


def allocate(
    batches: Iterable[StockBatch],
    requested_qty: int,
    already_committed_qty: int = 0,
    today: date | None = None,
    near_expiry_days: int | None = None,
) -> Allocation:
    """Pick the batch a requested quantity is drawn from.

    Only the earliest-expiring batch is proposed; a request is never split
    across batches. Availability is the total remaining across all usable
    batches less what the current draft has already committed for the item,
    since stock is decremented only once the invoice is saved.

    Raises:
        InvalidQuantityError: requested_qty is not a positive integer.
        InsufficientStockError: requested_qty exceeds what is available.
    """
    if isinstance(requested_qty, bool) or not isinstance(requested_qty, int) or requested_qty <= 0:
        raise InvalidQuantityError(requested_qty)

    ordered = sort_batches(batches)
    available = sum(b.qty_remaining for b in ordered) - max(already_committed_qty, 0)
    if not ordered or requested_qty > available:
        raise InsufficientStockError(requested_qty, max(available, 0))

    selected = ordered[0]
    window = settings.NEAR_EXPIRY_DAYS if near_expiry_days is None else near_expiry_days
    days = days_until_expiry(selected, today)

    warning = None
    if days is not None and days <= window:
        warning = NearExpiryWarning(selected.id, days)
        logger.warning("Allocating from batch %s of item %s expiring in %d days", selected.id, selected.item_id, days)

    return Allocation(
        batch_id=selected.id,
        available_qty=available,
        days_until_expiry=days,
        warning=warning,
    )
