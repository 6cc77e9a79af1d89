"""Shared test fixtures for all test modules."""

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest

from pos_engine.core.token_store import InMemoryTokenStore
from pos_engine.models.exchange_rate import ExchangeRateContext
from pos_engine.models.stock import CatalogItem, StockBatch
from pos_engine.services.api_client import ResilientClient

TODAY = date(2026, 10, 18)
BRANCH_ID = "branch-1"
API_URL = "http://pos.test"


class FakeServer:
    """Scripted stand-in for the remote API.

    Each entry of ``responses`` is either an ``httpx.Response`` or an
    exception instance to raise; entries are consumed in order, and the last
    one repeats once the script runs out. Procedure-specific handlers in
    ``routes`` win over the script.
    """

    def __init__(self):
        self.responses: list = []
        self.routes: dict = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/trpc/")
        if path in self.routes:
            result = self.routes[path]
            if callable(result):
                result = result(request)
        else:
            result = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(result, Exception):
            raise result
        return result

    @staticmethod
    def ok(data) -> httpx.Response:
        return httpx.Response(200, json={"result": {"data": {"json": data}}})

    def paths(self) -> list[str]:
        return [r.url.path.removeprefix("/trpc/") for r in self.requests]

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)["json"]


@pytest.fixture
def rate_context():
    """Open day at 600 SDG per USD."""
    return ExchangeRateContext(branch_id=BRANCH_ID, date=TODAY, rate_usd_to_sdg=Decimal("600"))


@pytest.fixture
def catalog_item():
    return CatalogItem(
        id="item-1",
        name="Paracetamol 500mg",
        wholesale_price_usd=Decimal("8.00"),
        retail_price_usd=Decimal("10.00"),
    )


@pytest.fixture
def batches():
    """Two batches of item-1: the first expires in 10 days, the second in 40."""
    return [
        StockBatch(id="batch-2", item_id="item-1", qty_remaining=2, expiry_date=date(2026, 11, 27)),
        StockBatch(id="batch-1", item_id="item-1", qty_remaining=2, expiry_date=date(2026, 10, 28)),
    ]


@pytest.fixture
def token_store():
    return InMemoryTokenStore("secret-token")


@pytest.fixture
def sleeps():
    """Records backoff waits instead of sleeping."""
    return []


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def client(server, token_store, sleeps):
    """ResilientClient wired to the fake server with a 1s base delay."""
    api = ResilientClient(
        base_url=API_URL,
        token_store=token_store,
        max_retries=3,
        base_delay=1.0,
        timeout=5.0,
        sleep=sleeps.append,
        transport=httpx.MockTransport(server),
    )
    yield api
    api.close()
