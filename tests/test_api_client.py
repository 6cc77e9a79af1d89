"""Tests for ResilientClient: retry policy, backoff, error mapping and envelopes."""

import json
import logging
from unittest.mock import MagicMock, patch

import httpx
import pytest

from pos_engine.core.exceptions import (
    NetworkError,
    RequestTimeoutError,
    StockConflictError,
    TransientHttpError,
    UnauthorizedError,
    ValidationError,
)
from pos_engine.services.api_client import (
    ResilientClient,
    TransportFailure,
    classify_response,
    unwrap_result,
)
from tests.conftest import API_URL, FakeServer


def _error_envelope(message, code, http_status):
    return {"error": {"message": message, "data": {"code": code, "httpStatus": http_status}}}


class TestRetryPolicy:
    def test_retries_transient_status_then_succeeds(self, client, server, sleeps):
        """Test 503, 503, 200 returns the data after waiting 1s then 2s."""
        server.responses = [
            httpx.Response(503),
            httpx.Response(503),
            FakeServer.ok({"id": "x"}),
        ]
        assert client.call("/trpc/items.get") == {"id": "x"}
        assert sleeps == [1.0, 2.0]
        assert len(server.requests) == 3

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_every_listed_status_is_retried(self, client, server, sleeps, status):
        """Test each status on the retry list gets another attempt."""
        server.responses = [httpx.Response(status), FakeServer.ok(True)]
        assert client.call("/trpc/ping") is True
        assert sleeps == [1.0]

    def test_exhausted_retries_raise_last_failure(self, client, server, sleeps):
        """Test a persistent 503 stops after max_retries and raises."""
        server.responses = [httpx.Response(503, json={"message": "Service Unavailable"})]
        with pytest.raises(TransientHttpError) as exc_info:
            client.call("/trpc/ping")
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True
        assert len(server.requests) == 4
        assert sleeps == [1.0, 2.0, 4.0]

    def test_not_found_is_not_retried(self, client, server, sleeps):
        """Test a 404 fails on the first attempt without waiting."""
        server.responses = [httpx.Response(404, json={"message": "Not found"})]
        with pytest.raises(ValidationError) as exc_info:
            client.call("/trpc/missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Not found"
        assert len(server.requests) == 1
        assert sleeps == []

    def test_bad_request_is_not_retried(self, client, server, sleeps):
        """Test a 400 is a validation error, never retried."""
        server.responses = [httpx.Response(400, json=_error_envelope("Invalid input", "BAD_REQUEST", 400))]
        with pytest.raises(ValidationError) as exc_info:
            client.call("/trpc/sales.salesInvoices.create", method="POST", body={"json": {}})
        assert exc_info.value.message == "Invalid input"
        assert exc_info.value.error_code == "BAD_REQUEST"
        assert sleeps == []

    def test_network_failure_exhausts_retries(self, client, server, sleeps):
        """Test connection failures are retried and end in NetworkError."""
        server.responses = [httpx.ConnectError("connection refused")]
        with pytest.raises(NetworkError) as exc_info:
            client.call("/trpc/ping")
        assert "Cannot connect to server at http://pos.test" in exc_info.value.message
        assert len(server.requests) == 4
        assert sleeps == [1.0, 2.0, 4.0]

    def test_timeout_maps_to_timeout_error(self, client, server, sleeps):
        """Test timeouts are retried and surface as RequestTimeoutError."""
        server.responses = [httpx.ReadTimeout("timed out")]
        with pytest.raises(RequestTimeoutError):
            client.call("/trpc/ping")
        assert sleeps == [1.0, 2.0, 4.0]

    def test_network_failure_then_success(self, client, server, sleeps):
        """Test a dropped connection followed by success returns normally."""
        server.responses = [httpx.ConnectError("reset"), FakeServer.ok([1, 2])]
        assert client.call("/trpc/ping") == [1, 2]
        assert sleeps == [1.0]

    def test_per_call_overrides(self, client, server, sleeps):
        """Test max_retries and base_delay can be overridden per call."""
        server.responses = [httpx.Response(502)]
        with pytest.raises(TransientHttpError):
            client.call("/trpc/ping", max_retries=2, base_delay=0.5)
        assert sleeps == [0.5, 1.0]
        assert len(server.requests) == 3

    def test_zero_retries_tries_once(self, client, server, sleeps):
        """Test max_retries=0 makes a single attempt."""
        server.responses = [httpx.Response(500)]
        with pytest.raises(TransientHttpError):
            client.call("/trpc/ping", max_retries=0)
        assert len(server.requests) == 1
        assert sleeps == []

    def test_retry_is_logged(self, client, server, caplog):
        """Test each retry logs a warning."""
        server.responses = [httpx.Response(503), FakeServer.ok(None)]
        with caplog.at_level(logging.WARNING, logger="pos_engine.services.api_client"):
            client.call("/trpc/ping")
        assert any("retry 1/3" in r.getMessage() for r in caplog.records)


class TestErrorMapping:
    def test_unauthorized_clears_token_once(self, client, server, token_store, sleeps):
        """Test a 401 clears the stored token and is not retried."""
        server.responses = [httpx.Response(401, json={"message": "Unauthorized"})]
        with pytest.raises(UnauthorizedError):
            client.call("/trpc/ping")
        assert token_store.get_token() is None
        assert len(server.requests) == 1
        assert sleeps == []

    def test_unauthorized_envelope_clears_token(self, client, server, token_store):
        """Test an UNAUTHORIZED error code clears the token too."""
        server.responses = [httpx.Response(200, json=_error_envelope("Login required", "UNAUTHORIZED", 401))]
        with pytest.raises(UnauthorizedError):
            client.call("/trpc/ping")
        assert token_store.get_token() is None

    def test_conflict_raises_stock_conflict(self, client, server, sleeps):
        """Test a 409 surfaces as StockConflictError without retrying."""
        server.responses = [httpx.Response(409, json=_error_envelope("Stock changed", "CONFLICT", 409))]
        with pytest.raises(StockConflictError) as exc_info:
            client.call("/trpc/sales.salesInvoices.create", method="POST", body={"json": {}})
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.message == "Stock changed"
        assert sleeps == []

    def test_success_status_with_error_envelope_fails(self, client, server, sleeps):
        """Test a 200 carrying an error envelope is a non-retried failure."""
        server.responses = [httpx.Response(200, json=_error_envelope("Insufficient stock", "BAD_REQUEST", 400))]
        with pytest.raises(ValidationError) as exc_info:
            client.call("/trpc/ping")
        assert exc_info.value.message == "Insufficient stock"
        assert exc_info.value.status_code == 400
        assert sleeps == []

    def test_envelope_reporting_retryable_status_is_not_retried(self):
        """Test an error envelope on a 2xx never counts as transient."""
        response = httpx.Response(200)
        failure = classify_response(response, _error_envelope("oops", "INTERNAL_SERVER_ERROR", 500))
        assert failure == TransportFailure(kind="http", status=400, message="oops", error_code="INTERNAL_SERVER_ERROR")
        assert failure.retryable is False

    def test_non_json_error_body(self, client, server):
        """Test a plain-text error body becomes the error message."""
        server.responses = [httpx.Response(400, text="Bad things")]
        with pytest.raises(ValidationError) as exc_info:
            client.call("/trpc/ping")
        assert exc_info.value.message == "Bad things"


class TestEnvelopes:
    def test_unwrap_json_envelope(self):
        """Test result.data.json is unwrapped first."""
        assert unwrap_result({"result": {"data": {"json": {"a": 1}}}}) == {"a": 1}

    def test_unwrap_data_envelope(self):
        """Test result.data is used when there is no json key."""
        assert unwrap_result({"result": {"data": [1, 2]}}) == [1, 2]

    def test_unwrap_plain_body(self):
        """Test bodies without an envelope are returned as-is."""
        assert unwrap_result({"a": 1}) == {"a": 1}
        assert unwrap_result(None) is None

    def test_empty_body_returns_none(self, client, server):
        """Test an empty 2xx body returns None."""
        server.responses = [httpx.Response(204)]
        assert client.call("/trpc/ping") is None

    def test_query_encodes_input(self, client, server):
        """Test queries send GET with the params wrapped in input={"json": ...}."""
        server.responses = [FakeServer.ok({"ok": True})]
        client.query("dayCycle.getCurrent", {"branchId": "b1"})
        request = server.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/trpc/dayCycle.getCurrent"
        assert json.loads(request.url.params["input"]) == {"json": {"branchId": "b1"}}

    def test_query_without_params(self, client, server):
        """Test a query with no params sends no input."""
        server.responses = [FakeServer.ok([])]
        client.query("inventory.items.list")
        assert "input" not in server.requests[0].url.params

    def test_mutation_wraps_body(self, client, server):
        """Test mutations POST {"json": data}."""
        server.responses = [FakeServer.ok({"id": "inv-1"})]
        assert client.mutation("sales.salesInvoices.void", {"id": "inv-1"}) == {"id": "inv-1"}
        request = server.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"json": {"id": "inv-1"}}

    def test_bearer_token_sent(self, client, server):
        """Test the stored token is sent as a bearer credential."""
        server.responses = [FakeServer.ok(None)]
        client.call("/trpc/ping")
        assert server.requests[0].headers["Authorization"] == "Bearer secret-token"

    def test_no_token_no_header(self, server, sleeps):
        """Test no Authorization header is sent when signed out."""
        server.responses = [FakeServer.ok(None)]
        with ResilientClient(
            base_url=API_URL, sleep=sleeps.append, transport=httpx.MockTransport(server)
        ) as api:
            api.call("/trpc/ping")
        assert "Authorization" not in server.requests[0].headers


class TestClientConstruction:
    @patch("pos_engine.services.api_client.httpx.Client")
    def test_uses_settings_defaults(self, mock_client_cls):
        """Test the client falls back to configured URL and timeout."""
        ResilientClient(sleep=lambda _: None)
        _, kwargs = mock_client_cls.call_args
        assert kwargs["base_url"] == "http://localhost:4000"
        assert kwargs["timeout"] == 30.0

    @patch("pos_engine.services.api_client.httpx.Client")
    def test_returns_decoded_json(self, mock_client_cls):
        """Test a successful response body is decoded and unwrapped."""
        mock_response = MagicMock()
        mock_response.is_success = True
        mock_response.status_code = 200
        mock_response.content = b"{}"
        mock_response.json.return_value = {"result": {"data": {"json": {"rate": 600}}}}
        mock_client_cls.return_value.request.return_value = mock_response

        api = ResilientClient(base_url="http://pos.test/", sleep=lambda _: None)
        assert api.base_url == "http://pos.test"
        assert api.call("/trpc/ping") == {"rate": 600}
        mock_client_cls.return_value.request.assert_called_once()
