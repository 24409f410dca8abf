from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated, Dict, List, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Booleans and numeric strings are rejected; JSON integers are accepted.
Rate = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class LatestRatesPayload(BaseModel):
    """Body of ``GET .../latest/<BASE>``; unknown fields are ignored."""

    model_config = ConfigDict(frozen=True)

    conversion_rates: Dict[str, Rate]


class PairRatePayload(BaseModel):
    """Body of ``GET .../pair/<BASE>/<TARGET>``."""

    model_config = ConfigDict(frozen=True)

    conversion_rate: Rate


@dataclass(frozen=True)
class RateTable:
    base: str
    rates: Mapping[str, float]

    @classmethod
    def from_payload(cls, base: str, payload: LatestRatesPayload) -> "RateTable":
        return cls(base=base, rates=MappingProxyType(dict(payload.conversion_rates)))

    def sorted_by_rate(self) -> List[Tuple[str, float]]:
        # sorted() is stable, so equal rates keep the response's order
        return sorted(self.rates.items(), key=lambda item: item[1], reverse=True)


@dataclass(frozen=True)
class PairRate:
    base: str
    target: str
    rate: float


@dataclass(frozen=True)
class ConversionResult:
    base: str
    target: str
    amount: float
    rate: float
    converted_amount: float
