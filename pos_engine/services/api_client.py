"""HTTP client for the remote server with retry and exponential backoff."""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from pos_engine.core.config import settings
from pos_engine.core.exceptions import (
    ApiError,
    NetworkError,
    RequestTimeoutError,
    StockConflictError,
    TransientHttpError,
    UnauthorizedError,
    ValidationError,
)
from pos_engine.core.token_store import InMemoryTokenStore, TokenStore

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
CONFLICT_ERROR_CODES = frozenset({"CONFLICT", "PRECONDITION_FAILED"})
UNAUTHORIZED_ERROR_CODES = frozenset({"UNAUTHORIZED"})

FailureKind = Literal["network", "timeout", "http"]


@dataclass(frozen=True)
class TransportFailure:
    """Outcome of a failed attempt, classified where it was observed."""

    kind: FailureKind
    status: int | None = None
    message: str = ""
    error_code: str | None = None

    @property
    def retryable(self) -> bool:
        if self.kind in ("network", "timeout"):
            return True
        return self.status in RETRYABLE_STATUS_CODES


def classify_exception(exc: httpx.TransportError) -> TransportFailure:
    if isinstance(exc, httpx.TimeoutException):
        return TransportFailure(kind="timeout", message=str(exc) or "Request timed out")
    return TransportFailure(kind="network", message=str(exc) or "Network request failed")


def classify_response(response: httpx.Response, payload: Any) -> TransportFailure | None:
    """Return the failure carried by a response, or None when it succeeded.

    A 2xx body holding an ``error`` envelope is a failure too; it is tagged
    with the HTTP status the envelope reports (400 when it reports none) so
    that it is never retried as a transient error.
    """
    error = payload.get("error") if isinstance(payload, dict) else None
    if response.is_success and not error:
        return None

    message = "Request failed"
    error_code: str | None = None
    status = response.status_code
    if isinstance(error, dict):
        data = error.get("data") or {}
        message = error.get("message") or data.get("message") or message
        error_code = data.get("code") or error.get("code")
        if response.is_success:
            status = data.get("httpStatus") or 400
    elif isinstance(error, str):
        message = error
    elif isinstance(payload, dict) and payload.get("message"):
        message = str(payload["message"])

    if response.is_success and status in RETRYABLE_STATUS_CODES:
        status = 400
    return TransportFailure(kind="http", status=status, message=message, error_code=error_code)


def unwrap_result(payload: Any) -> Any:
    """Extract data from the ``result.data.json`` / ``result.data`` envelope."""
    if isinstance(payload, dict) and isinstance(payload.get("result"), dict):
        data = payload["result"].get("data")
        if isinstance(data, dict) and "json" in data:
            return data["json"]
        if data is not None:
            return data
    return payload


class ResilientClient:
    """Synchronous client that retries transient failures with backoff.

    Retries on HTTP 408, 429, 500, 502, 503, 504 and on network or timeout
    failures. The wait before retry ``n`` (counting from 0) is
    ``base_delay * 2**n`` seconds; there is no wait after the last attempt.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.token_store = token_store or InMemoryTokenStore()
        self.max_retries = settings.API_MAX_RETRIES if max_retries is None else max_retries
        self.base_delay = settings.API_RETRY_BASE_DELAY if base_delay is None else base_delay
        self.timeout = timeout or settings.API_TIMEOUT_SECONDS
        self._sleep = sleep
        self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ResilientClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
        max_retries: int | None = None,
        base_delay: float | None = None,
    ) -> Any:
        """Send a request and return the decoded, unwrapped response body.

        Raises:
            ValidationError: The server rejected the request (non-retryable).
            StockConflictError: The server reported a stock conflict.
            UnauthorizedError: The credential was rejected; it has been cleared.
            NetworkError, RequestTimeoutError, TransientHttpError: Retries
                were exhausted; the last observed failure is raised.
        """
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.base_delay if base_delay is None else base_delay
        headers = {"Content-Type": "application/json"}
        token = self.token_store.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        failure: TransportFailure | None = None
        for attempt in range(retries + 1):
            try:
                response = self._client.request(
                    method,
                    endpoint,
                    json=body,
                    params=params,
                    headers=headers,
                )
                payload = self._decode(response)
                failure = classify_response(response, payload)
            except httpx.TransportError as exc:
                failure = classify_exception(exc)

            if failure is None:
                return unwrap_result(payload)

            if not failure.retryable or attempt >= retries:
                break

            wait = delay * (2**attempt)
            logger.warning(
                "%s %s failed (%s %s), retry %d/%d in %.2fs",
                method,
                endpoint,
                failure.kind,
                failure.status or "-",
                attempt + 1,
                retries,
                wait,
            )
            self._sleep(wait)

        assert failure is not None
        if failure.retryable:
            logger.error("%s %s failed after %d attempts: %s", method, endpoint, retries + 1, failure.message)
        raise self._to_error(failure)

    def query(self, path: str, params: dict[str, Any] | None = None, **options: Any) -> Any:
        """Call a read procedure: ``GET /trpc/<path>?input={"json": params}``."""
        query_params = None
        if params:
            query_params = {"input": json.dumps({"json": params}, default=str)}
        return self.call(f"/trpc/{path}", method="GET", params=query_params, **options)

    def mutation(self, path: str, data: dict[str, Any], **options: Any) -> Any:
        """Call a write procedure: ``POST /trpc/<path>`` with ``{"json": data}``."""
        return self.call(f"/trpc/{path}", method="POST", body={"json": data}, **options)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text[:1000]} if not response.is_success else None

    def _to_error(self, failure: TransportFailure) -> ApiError:
        if failure.kind == "timeout":
            return RequestTimeoutError(
                f"Request to {self.base_url} timed out. Check the connection and try again."
            )
        if failure.kind == "network":
            return NetworkError(
                f"Cannot connect to server at {self.base_url}. "
                "Make sure the server is running and the API URL is correct."
            )

        status = failure.status
        code = (failure.error_code or "").upper()
        if status == 401 or code in UNAUTHORIZED_ERROR_CODES:
            logger.info("Credential rejected by %s, clearing stored token", self.base_url)
            self.token_store.clear_token()
            return UnauthorizedError(failure.message, status_code=status, error_code=failure.error_code)
        if status == 409 or code in CONFLICT_ERROR_CODES:
            return StockConflictError(failure.message, status_code=status, error_code=failure.error_code)
        if failure.retryable:
            return TransientHttpError(failure.message, status_code=status, error_code=failure.error_code)
        return ValidationError(failure.message, status_code=status, error_code=failure.error_code)
