"""Line and total arithmetic for draft invoices in USD and SDG."""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any
from uuid import uuid4

from pos_engine.core.exceptions import InvalidQuantityError, LineNotFoundError, RateLockedError
from pos_engine.models.exchange_rate import ExchangeRateContext
from pos_engine.models.invoice import (
    Discount,
    InvoiceCategory,
    InvoiceDraft,
    InvoiceLineDraft,
    InvoiceTotals,
)
from pos_engine.models.stock import CatalogItem, StockBatch
from pos_engine.services.batch_allocator import Allocation, allocate
from pos_engine.services.currency import ZERO, round_usd, to_decimal, to_sdg


def _non_negative(value: Any) -> Decimal:
    amount = to_decimal(value or 0)
    return amount if amount > 0 else ZERO


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)
    return quantity


def new_draft(
    rate_context: ExchangeRateContext,
    discount: Discount | None = None,
    tax_rate: Any = 0,
) -> InvoiceDraft:
    """Start an empty draft priced against ``rate_context``."""
    return InvoiceDraft(
        rate_context=rate_context,
        discount=discount or Discount(),
        tax_rate=_non_negative(tax_rate),
    )


def rebind_rate(draft: InvoiceDraft, rate_context: ExchangeRateContext) -> None:
    """Swap the draft's rate context; only allowed before anything is priced."""
    if draft.lines:
        raise RateLockedError()
    draft.rate_context = rate_context


def _line_net_usd(line: InvoiceLineDraft) -> Decimal:
    gross = line.unit_price_usd * line.quantity
    return gross - line.discount.amount_of(gross) if line.discount else gross


def _price_line(line: InvoiceLineDraft) -> None:
    net = _line_net_usd(line)
    line.unit_price_sdg = to_sdg(line.unit_price_usd, line.rate_usd_to_sdg)
    line.line_total_usd = round_usd(net)
    line.line_total_sdg = to_sdg(net, line.rate_usd_to_sdg)


def add_line(
    draft: InvoiceDraft,
    item: CatalogItem,
    batch: StockBatch | None,
    quantity: int,
    category: InvoiceCategory = InvoiceCategory.RETAIL,
    discount: Discount | None = None,
) -> InvoiceLineDraft:
    """Append a line for ``item`` and recompute the draft totals.

    Wholesale invoices use the wholesale price, every other category the
    retail price. The line is priced at the draft's current rate and keeps
    that rate for later quantity updates.
    """
    quantity = _validate_quantity(quantity)
    if category == InvoiceCategory.WHOLESALE:
        unit_price = to_decimal(item.wholesale_price_usd)
    else:
        unit_price = to_decimal(item.retail_price_usd)

    line = InvoiceLineDraft(
        line_id=f"{item.id}-{uuid4().hex[:12]}",
        item_id=item.id,
        quantity=quantity,
        unit_price_usd=unit_price,
        unit_price_sdg=ZERO,
        line_total_usd=ZERO,
        line_total_sdg=ZERO,
        rate_usd_to_sdg=draft.rate_context.rate_usd_to_sdg,
        batch_id=batch.id if batch else None,
        discount=discount,
        name=item.name,
        expiry_date=batch.expiry_date if batch else None,
    )
    _price_line(line)
    draft.lines.append(line)
    recompute_totals(draft)
    return line


def add_allocated_line(
    draft: InvoiceDraft,
    item: CatalogItem,
    batches: Iterable[StockBatch],
    quantity: int,
    category: InvoiceCategory = InvoiceCategory.RETAIL,
    discount: Discount | None = None,
    **allocate_options: Any,
) -> tuple[InvoiceLineDraft, Allocation]:
    """Allocate stock for ``item`` against what the draft already holds, then add it."""
    batch_list = list(batches)
    allocation = allocate(
        batch_list,
        quantity,
        already_committed_qty=committed_quantity(draft, item.id),
        **allocate_options,
    )
    batch = next(b for b in batch_list if b.id == allocation.batch_id)
    line = add_line(draft, item, batch, quantity, category=category, discount=discount)
    return line, allocation


def get_line(draft: InvoiceDraft, line_id: str) -> InvoiceLineDraft:
    for line in draft.lines:
        if line.line_id == line_id:
            return line
    raise LineNotFoundError(line_id)


def update_quantity(
    draft: InvoiceDraft,
    line_id: str,
    quantity: int,
    batches: Iterable[StockBatch] | None = None,
    **allocate_options: Any,
) -> tuple[InvoiceLineDraft, Allocation | None]:
    """Change a line's quantity and recompute it and the totals.

    When ``batches`` is given the new quantity is checked against stock,
    counting what the other lines of the draft commit for the same item,
    and the line moves to the batch the allocation selects. The allocation
    is returned so its near-expiry warning reaches the caller; it is None
    when no batches were given.
    """
    quantity = _validate_quantity(quantity)
    line = get_line(draft, line_id)
    allocation = None
    if batches is not None:
        batch_list = list(batches)
        allocation = allocate(
            batch_list,
            quantity,
            already_committed_qty=committed_quantity(draft, line.item_id, exclude_line_id=line_id),
            **allocate_options,
        )
        batch = next(b for b in batch_list if b.id == allocation.batch_id)
        line.batch_id = batch.id
        line.expiry_date = batch.expiry_date
    line.quantity = quantity
    _price_line(line)
    recompute_totals(draft)
    return line, allocation


def remove_line(draft: InvoiceDraft, line_id: str) -> InvoiceTotals:
    """Drop a line. Unknown ids are ignored so repeated removal is harmless."""
    draft.lines = [line for line in draft.lines if line.line_id != line_id]
    return recompute_totals(draft)


def set_discount(draft: InvoiceDraft, discount: Discount) -> InvoiceTotals:
    draft.discount = discount
    return recompute_totals(draft)


def set_tax_rate(draft: InvoiceDraft, tax_rate: Any) -> InvoiceTotals:
    draft.tax_rate = _non_negative(tax_rate)
    return recompute_totals(draft)


def committed_quantity(draft: InvoiceDraft, item_id: str, exclude_line_id: str | None = None) -> int:
    """Units of ``item_id`` already placed on the draft."""
    return sum(
        line.quantity
        for line in draft.lines
        if line.item_id == item_id and line.line_id != exclude_line_id
    )


def recompute_totals(draft: InvoiceDraft) -> InvoiceTotals:
    """Recompute and store the draft totals.

    subtotal = sum of line totals
    discount = fixed amount or subtotal * value / 100, capped at the subtotal
    tax      = (subtotal - discount) * tax_rate
    total    = subtotal - discount + tax

    Each SDG figure is converted once from the unrounded USD figure; the SDG
    total is built from the SDG figures so each currency is consistent with
    its own rounding.
    """
    if not draft.lines:
        draft.totals = InvoiceTotals()
        return draft.totals

    rate = draft.rate_context.rate_usd_to_sdg
    subtotal = sum((_line_net_usd(line) for line in draft.lines), ZERO)
    discount = draft.discount.amount_of(subtotal)
    tax = (subtotal - discount) * draft.tax_rate

    subtotal_usd, discount_usd, tax_usd = round_usd(subtotal), round_usd(discount), round_usd(tax)
    subtotal_sdg, discount_sdg, tax_sdg = to_sdg(subtotal, rate), to_sdg(discount, rate), to_sdg(tax, rate)

    draft.totals = InvoiceTotals(
        subtotal_usd=subtotal_usd,
        subtotal_sdg=subtotal_sdg,
        discount_usd=discount_usd,
        discount_sdg=discount_sdg,
        tax_usd=tax_usd,
        tax_sdg=tax_sdg,
        total_usd=max(subtotal_usd - discount_usd + tax_usd, ZERO),
        total_sdg=max(subtotal_sdg - discount_sdg + tax_sdg, ZERO),
    )
    return draft.totals
