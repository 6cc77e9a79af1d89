"""Error taxonomy for the invoice and settlement engine.

Computation errors (rates, quantities, stock, tender, payments) are raised
before any request leaves the device. Request errors are raised by the
request client once a call has definitively failed.
"""

from decimal import Decimal
from typing import Any


class PosEngineError(Exception):
    """Base class for every error raised by the engine."""

    code = "pos_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


# Computation errors


class InvalidRateError(PosEngineError):
    code = "invalid_rate"

    def __init__(self, rate: Any):
        super().__init__(f"Exchange rate must be positive, got {rate}", rate=rate)
        self.rate = rate


class RateLockedError(PosEngineError):
    code = "rate_locked"

    def __init__(self) -> None:
        super().__init__("Exchange rate cannot change once lines have been priced")


class InvalidQuantityError(PosEngineError):
    code = "invalid_quantity"

    def __init__(self, quantity: Any):
        super().__init__(f"Quantity must be a positive whole number, got {quantity}", quantity=quantity)
        self.quantity = quantity


class InsufficientStockError(PosEngineError):
    code = "insufficient_stock"

    def __init__(self, requested_qty: int, available_qty: int):
        super().__init__(
            f"Insufficient stock. Available: {available_qty}, requested: {requested_qty}",
            requested_qty=requested_qty,
            available_qty=available_qty,
        )
        self.requested_qty = requested_qty
        self.available_qty = available_qty


class LineNotFoundError(PosEngineError):
    code = "line_not_found"

    def __init__(self, line_id: str):
        super().__init__(f"Invoice line {line_id} not found", line_id=line_id)
        self.line_id = line_id


class InvalidAmountError(PosEngineError):
    code = "invalid_amount"


class InsufficientTenderError(PosEngineError):
    code = "insufficient_tender"

    def __init__(self, total_due_sdg: Decimal, tendered_sdg: Decimal):
        shortfall = total_due_sdg - tendered_sdg
        super().__init__(
            f"Total received {tendered_sdg} is less than invoice total {total_due_sdg}",
            total_due_sdg=total_due_sdg,
            tendered_sdg=tendered_sdg,
            shortfall_sdg=shortfall,
        )
        self.total_due_sdg = total_due_sdg
        self.tendered_sdg = tendered_sdg
        self.shortfall_sdg = shortfall


class OverpaymentError(PosEngineError):
    code = "overpayment"

    def __init__(self, amount_sdg: Decimal, amount_due_sdg: Decimal):
        super().__init__(
            f"Payment of {amount_sdg} exceeds the outstanding {amount_due_sdg}",
            amount_sdg=amount_sdg,
            amount_due_sdg=amount_due_sdg,
        )
        self.amount_sdg = amount_sdg
        self.amount_due_sdg = amount_due_sdg


class InvoiceStateError(PosEngineError):
    code = "invalid_invoice_state"


class DayClosedError(PosEngineError):
    code = "day_closed"

    def __init__(self, branch_id: str | None = None):
        super().__init__("Day must be opened first to create an invoice", branch_id=branch_id)
        self.branch_id = branch_id


class InvoiceValidationError(PosEngineError):
    code = "invalid_invoice"


class EmptyInvoiceError(InvoiceValidationError):
    code = "empty_invoice"

    def __init__(self) -> None:
        super().__init__("Please add items to the invoice")


class CustomerRequiredError(InvoiceValidationError):
    code = "customer_required"

    def __init__(self) -> None:
        super().__init__("Customer is required for wholesale invoice")


# Request errors


class ApiError(PosEngineError):
    """A request to the remote server failed."""

    code = "api_error"
    retryable = False

    def __init__(self, message: str, status_code: int | None = None, error_code: str | None = None):
        super().__init__(message, status_code=status_code, error_code=error_code)
        self.status_code = status_code
        self.error_code = error_code


class NetworkError(ApiError):
    code = "network_error"
    retryable = True


class RequestTimeoutError(NetworkError):
    code = "timeout"


class TransientHttpError(ApiError):
    """The server answered with a status on the retry allow-list."""

    code = "server_unavailable"
    retryable = True


class ValidationError(ApiError):
    """The server rejected the request; retrying cannot help."""

    code = "validation_error"


class StockConflictError(ValidationError):
    """Stock changed on the server since the draft was built."""

    code = "stock_conflict"


class UnauthorizedError(ApiError):
    code = "unauthorized"


# Advisories


class NearExpiryWarning(UserWarning):
    """The allocated batch expires soon or has already expired.

    Returned alongside an allocation, never raised.
    """

    code = "near_expiry"

    def __init__(self, batch_id: str, days_until_expiry: int):
        if days_until_expiry < 0:
            message = f"Batch {batch_id} expired {-days_until_expiry} days ago"
        else:
            message = f"Warning: Nearest expiry in {days_until_expiry} days"
        super().__init__(message)
        self.message = message
        self.batch_id = batch_id
        self.days_until_expiry = days_until_expiry

    @property
    def expired(self) -> bool:
        return self.days_until_expiry < 0
