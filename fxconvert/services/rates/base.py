from __future__ import annotations

"""Request shapes shared by the rate client and the response cache.

A request is identified by its operation kind plus currency arguments; the
same shape always yields the same ``CacheKey`` regardless of how the caller
spelled the codes.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class RateOperation(str, Enum):
    LATEST = "latest"
    PAIR = "pair"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass(frozen=True)
class CacheKey:
    operation: RateOperation
    base: str
    target: Optional[str] = None

    @classmethod
    def for_latest(cls, base: str) -> "CacheKey":
        return cls(RateOperation.LATEST, normalize_code(base))

    @classmethod
    def for_pair(cls, base: str, target: str) -> "CacheKey":
        return cls(RateOperation.PAIR, normalize_code(base), normalize_code(target))

    def __str__(self) -> str:
        if self.target is None:
            return f"{self.operation.value}:{self.base}"
        return f"{self.operation.value}:{self.base}/{self.target}"


class RateFetcher(Protocol):
    async def fetch(
        self, operation: RateOperation, base: str, target: Optional[str] = None
    ) -> str: ...
