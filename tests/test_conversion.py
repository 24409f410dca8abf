import asyncio

import httpx
import pytest

from fxconvert.core.errors import InvalidAmount, InvalidCurrency, MalformedResponse
from fxconvert.services.money import format_amount, format_input_amount, format_rate, round2, round4
from fxconvert.services.rates.cache_service import ResponseCache
from fxconvert.services.rates.conversion import CurrencyConverter

from .conftest import latest_body, pair_body


def test_list_rates_sorted_descending(converter):
    rates = asyncio.run(converter.list_rates("USD"))
    assert rates == [("EUR", 0.9), ("GBP", 0.8)]


def test_list_rates_sort_is_stable_for_ties(cache, stub_fetcher):
    stub_fetcher.bodies[("latest", "USD", None)] = latest_body(
        {"AAA": 1.0, "JPY": 150.0, "BBB": 1.0, "CCC": 0.5, "DDD": 1.0}
    )
    rates = asyncio.run(CurrencyConverter(cache, stub_fetcher).list_rates("USD"))
    assert rates == [
        ("JPY", 150.0),
        ("AAA", 1.0),
        ("BBB", 1.0),
        ("DDD", 1.0),
        ("CCC", 0.5),
    ]


def test_list_rates_is_idempotent_within_ttl(converter, stub_fetcher):
    first = asyncio.run(converter.list_rates("USD"))
    second = asyncio.run(converter.list_rates("usd"))
    assert first == second
    assert stub_fetcher.calls == [("latest", "USD", None)]


def test_convert_arithmetic(converter):
    result = asyncio.run(converter.convert("USD", "EUR", 10))
    assert result.rate == 0.9
    assert result.converted_amount == 9.0
    assert format_amount(result.converted_amount) == "9.00"
    assert (result.base, result.target, result.amount) == ("USD", "EUR", 10)


def test_convert_zero_amount(converter):
    assert asyncio.run(converter.convert("USD", "EUR", 0)).converted_amount == 0.0


def test_display_rounding_keeps_stored_precision(cache, stub_fetcher):
    stub_fetcher.bodies[("pair", "USD", "EUR")] = pair_body(0.912345)
    result = asyncio.run(CurrencyConverter(cache, stub_fetcher).convert("USD", "EUR", 3))
    assert format_rate(result.rate) == "0.9123"
    assert format_amount(result.converted_amount) == "2.74"
    assert result.rate == 0.912345
    assert result.converted_amount == pytest.approx(2.737035)


@pytest.mark.parametrize("body", ['{"foo":1}', "not json", '{"conversion_rates": {"EUR": "x"}}', '{"conversion_rates": [1, 2]}'])
def test_malformed_latest_body(cache, stub_fetcher, body):
    stub_fetcher.bodies[("latest", "USD", None)] = body
    with pytest.raises(MalformedResponse):
        asyncio.run(CurrencyConverter(cache, stub_fetcher).list_rates("USD"))


@pytest.mark.parametrize("body", ['{"foo":1}', '{"conversion_rate": null}', '{"conversion_rate": true}', '{"conversion_rate": "0.9"}'])
def test_malformed_pair_body(cache, stub_fetcher, body):
    stub_fetcher.bodies[("pair", "USD", "EUR")] = body
    with pytest.raises(MalformedResponse):
        asyncio.run(CurrencyConverter(cache, stub_fetcher).convert("USD", "EUR", 10))


def test_integer_rates_are_accepted(cache, stub_fetcher):
    stub_fetcher.bodies[("pair", "USD", "EUR")] = '{"conversion_rate": 2}'
    result = asyncio.run(CurrencyConverter(cache, stub_fetcher).convert("USD", "EUR", 1.5))
    assert result.converted_amount == 3.0


def test_errors_propagate_and_nothing_is_cached(cache, stub_fetcher):
    stub_fetcher.error = InvalidCurrency()
    with pytest.raises(InvalidCurrency):
        asyncio.run(CurrencyConverter(cache, stub_fetcher).list_rates("USD"))
    assert len(cache) == 0


def test_rate_table_is_read_only(converter):
    table = asyncio.run(converter.rate_table("USD"))
    with pytest.raises(TypeError):
        table.rates["EUR"] = 1.0  # type: ignore[index]


def test_end_to_end_with_mock_transport(mock_client, clock):
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if "/latest/" in request.url.path:
            return httpx.Response(200, text='{"conversion_rates":{"EUR":0.9,"GBP":0.8}}')
        return httpx.Response(404)

    converter = CurrencyConverter(ResponseCache(clock=clock), mock_client(handler))

    assert asyncio.run(converter.list_rates("USD")) == [("EUR", 0.9), ("GBP", 0.8)]
    assert asyncio.run(converter.list_rates("USD")) == [("EUR", 0.9), ("GBP", 0.8)]
    with pytest.raises(InvalidCurrency):
        asyncio.run(converter.convert("USD", "XXX", 1))
    clock.advance(hours=1)
    asyncio.run(converter.list_rates("USD"))

    assert calls == [
        "/v6/test-key/latest/USD",
        "/v6/test-key/pair/USD/XXX",
        "/v6/test-key/latest/USD",
    ]


def test_overflowing_conversion_is_invalid_amount(cache, stub_fetcher):
    stub_fetcher.bodies[("pair", "USD", "EUR")] = pair_body(10.0)
    with pytest.raises(InvalidAmount):
        asyncio.run(CurrencyConverter(cache, stub_fetcher).convert("USD", "EUR", 1e308))


@pytest.mark.parametrize("amount", [float("inf"), float("nan"), -1.0])
def test_convert_rejects_bad_amount_before_fetching(converter, stub_fetcher, amount):
    with pytest.raises(InvalidAmount):
        asyncio.run(converter.convert("USD", "EUR", amount))
    assert stub_fetcher.calls == []


def test_rounding_handles_large_finite_values():
    assert round2(1e300) == 1e300
    assert round4(1e308) == 1e308
    assert format_amount(123456789012345678901234567890.0).startswith("123456789012345")
    with pytest.raises(ValueError):
        round2(float("inf"))


@pytest.mark.parametrize(
    "value,expected",
    [(10.0, "10"), (1234567.0, "1234567"), (2.5, "2.5"), (0.1, "0.1"), (1e-7, "0.0000001"), (1e20, "100000000000000000000")],
)
def test_format_input_amount(value, expected):
    assert format_input_amount(value) == expected
