"""Human-readable, sortable invoice numbers.

Format: ``<TAG>-<BRANCH>-<YYYYMMDDHHMMSSfff>-<SEQ>-<RAND>``, for example
``INV-GLD-20261018093015123-0000-7QX2KD``. Within one generator the
(timestamp, sequence) pair strictly increases, so numbers never collide
and sort in creation order; the random suffix separates devices.
"""

import secrets
import string
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pos_engine.core.config import settings
from pos_engine.models.invoice import InvoiceType

TYPE_TAGS = {
    InvoiceType.SALES: "INV",
    InvoiceType.PROCUREMENT: "PO",
}
SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 6
MAX_SEQUENCE = 9999


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _random_suffix() -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))


def branch_code(branch_prefix: str | None) -> str:
    code = "".join(ch for ch in (branch_prefix or "") if ch.isalnum())[:3].upper()
    return code or settings.DEFAULT_BRANCH_CODE


class InvoiceNumberGenerator:
    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        suffix: Callable[[], str] | None = None,
    ):
        self._clock = clock or _utc_now
        self._suffix = suffix or _random_suffix
        self._last_tick: datetime | None = None
        self._sequence = 0

    def _next_tick(self) -> tuple[datetime, int]:
        now = self._clock()
        now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        last = self._last_tick
        if last is None or now > last:
            self._last_tick, self._sequence = now, 0
        elif self._sequence < MAX_SEQUENCE:
            # Same millisecond, or the clock stepped back: stay on the last tick.
            self._sequence += 1
        else:
            self._last_tick, self._sequence = last + timedelta(milliseconds=1), 0
        return self._last_tick, self._sequence

    def generate(self, invoice_type: InvoiceType | str, branch_prefix: str | None = None) -> str:
        tag = TYPE_TAGS[InvoiceType(invoice_type)]
        tick, sequence = self._next_tick()
        stamp = tick.strftime("%Y%m%d%H%M%S") + f"{tick.microsecond // 1000:03d}"
        return f"{tag}-{branch_code(branch_prefix)}-{stamp}-{sequence:04d}-{self._suffix()}"


_default_generator = InvoiceNumberGenerator()


def generate_invoice_number(
    invoice_type: InvoiceType | str = InvoiceType.SALES,
    branch_prefix: str | None = None,
) -> str:
    return _default_generator.generate(invoice_type, branch_prefix)
