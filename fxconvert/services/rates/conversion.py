from __future__ import annotations

import logging
import math
from typing import List, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from fxconvert.core.errors import InvalidAmount, MalformedResponse
from fxconvert.models.rates import (
    ConversionResult,
    LatestRatesPayload,
    PairRate,
    PairRatePayload,
    RateTable,
)
from .base import CacheKey, RateFetcher, RateOperation, normalize_code
from .cache_service import ResponseCache

"""Conversion engine.

Responsibilities:
    - Get the raw body for a request through the response cache (which calls
      the rate client on a miss).
    - Parse it into a RateTable or PairRate; a body of the wrong shape is a
      MalformedResponse, never a zero rate.
    - List rates sorted by rate descending, or compute ``amount * rate``.

Rounding is left to display code (``fxconvert.services.money``); results carry
full float precision.
"""

logger = logging.getLogger("fxconvert.conversion")

_P = TypeVar("_P", bound=BaseModel)


def _parse(body: str, model: Type[_P], key: CacheKey) -> _P:
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        logger.warning("malformed %s response: %d error(s)", key, e.error_count())
        raise MalformedResponse(
            f"Unexpected response format for {key}: {e.error_count()} invalid field(s)"
        ) from e


class CurrencyConverter:
    def __init__(self, cache: ResponseCache, client: RateFetcher):
        self._cache = cache
        self._client = client

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    async def rate_table(self, base: str) -> RateTable:
        key = CacheKey.for_latest(base)
        body = await self._cache.get_or_fetch(
            key, lambda: self._client.fetch(RateOperation.LATEST, key.base)
        )
        payload = _parse(body, LatestRatesPayload, key)
        return RateTable.from_payload(key.base, payload)

    async def pair_rate(self, base: str, target: str) -> PairRate:
        key = CacheKey.for_pair(base, target)
        body = await self._cache.get_or_fetch(
            key,
            lambda: self._client.fetch(RateOperation.PAIR, key.base, key.target),
        )
        payload = _parse(body, PairRatePayload, key)
        return PairRate(base=key.base, target=normalize_code(target), rate=payload.conversion_rate)

    async def list_rates(self, base: str) -> List[Tuple[str, float]]:
        table = await self.rate_table(base)
        return table.sorted_by_rate()

    async def convert(self, base: str, target: str, amount: float) -> ConversionResult:
        if not math.isfinite(amount) or amount < 0:
            raise InvalidAmount(f"Amount must be a non-negative number, got {amount!r}")
        pair = await self.pair_rate(base, target)
        converted = amount * pair.rate
        if not math.isfinite(converted):
            raise InvalidAmount(
                f"Converting {amount!r} {pair.base} at {pair.rate!r} overflows"
            )
        return ConversionResult(
            base=pair.base,
            target=pair.target,
            amount=amount,
            rate=pair.rate,
            converted_amount=converted,
        )
