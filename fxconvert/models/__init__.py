"""Response payloads and parsed rate values."""

from .rates import (
    ConversionResult,
    LatestRatesPayload,
    PairRate,
    PairRatePayload,
    RateTable,
)

__all__ = [
    "ConversionResult",
    "LatestRatesPayload",
    "PairRate",
    "PairRatePayload",
    "RateTable",
]
