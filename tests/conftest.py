"""
Pytest configuration and fixtures for the currency converter.

Provides a controllable clock, isolated settings, and rate clients backed by
httpx.MockTransport so no test touches the network.
"""

import json
import logging
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from fxconvert.core.config import Settings
from fxconvert.services.rates.base import RateOperation
from fxconvert.services.rates.cache_service import ResponseCache
from fxconvert.services.rates.conversion import CurrencyConverter
from fxconvert.services.rates.providers import ExchangeRateApiClient

API_KEY = "test-key"
BASE_URL = "https://fx.example.test/v6"


class FakeClock:
    """Stands in for time.monotonic; only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs).total_seconds()


class StubFetcher:
    """RateFetcher double returning canned bodies and recording every call."""

    def __init__(self, bodies: Dict[Tuple[str, str, Optional[str]], str]):
        self.bodies = bodies
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self.error: Optional[Exception] = None

    async def fetch(self, operation, base, target=None):
        call = (RateOperation(operation).value, base, target)
        self.calls.append(call)
        if self.error is not None:
            raise self.error
        return self.bodies[call]


def latest_body(rates: Dict[str, float]) -> str:
    return json.dumps({"result": "success", "conversion_rates": rates})


def pair_body(rate: float) -> str:
    return json.dumps({"result": "success", "conversion_rate": rate})


@pytest.fixture(autouse=True)
def restore_root_logging():
    """init_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.delenv("EXCHANGE_API_KEY", raising=False)
    monkeypatch.delenv("RATES_CACHE_TTL_SECONDS", raising=False)
    return Settings(
        _env_file=None,
        exchange_api_key=API_KEY,
        exchange_api_base_url=BASE_URL,
    )


@pytest.fixture
def cache(clock):
    return ResponseCache(ttl_seconds=3600, clock=clock)


@pytest.fixture
def stub_fetcher():
    return StubFetcher(
        {
            ("latest", "USD", None): latest_body({"EUR": 0.9, "GBP": 0.8}),
            ("pair", "USD", "EUR"): pair_body(0.9),
        }
    )


@pytest.fixture
def converter(cache, stub_fetcher):
    return CurrencyConverter(cache, stub_fetcher)


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], ExchangeRateApiClient]:
    """Factory: build an ExchangeRateApiClient whose HTTP layer is ``handler``."""

    def _make(handler):
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ExchangeRateApiClient(api_key=API_KEY, base_url=BASE_URL, http_client=http)

    return _make
