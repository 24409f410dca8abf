from __future__ import annotations

"""ExchangeRate-API v6 client.

Builds the endpoint for either operation and delegates the GET plus status
classification to ``fxconvert.services.http_client``. Returns the raw body
text; parsing happens in the conversion engine.
"""
from typing import Optional

import httpx

from fxconvert.core.config import Settings
from fxconvert.services.http_client import get_text
from .base import RateOperation, normalize_code


class ExchangeRateApiClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v6.exchangerate-api.com/v6",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._http = http_client

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None
    ) -> "ExchangeRateApiClient":
        return cls(
            api_key=settings.require_api_key(),
            base_url=settings.api_base_url,
            http_client=http_client,
        )

    def _path(
        self, operation: RateOperation, base: str, target: Optional[str]
    ) -> str:
        operation = RateOperation(operation)
        path = f"{operation.value}/{normalize_code(base)}"
        if operation is RateOperation.PAIR:
            if not target:
                raise ValueError("pair operation requires a target currency")
            path += f"/{normalize_code(target)}"
        return path

    def build_url(
        self, operation: RateOperation, base: str, target: Optional[str] = None
    ) -> str:
        return f"{self._base_url}/{self._api_key}/{self._path(operation, base, target)}"

    async def fetch(
        self, operation: RateOperation, base: str, target: Optional[str] = None
    ) -> str:
        url = self.build_url(operation, base, target)
        return await get_text(
            url, client=self._http, label=self._path(operation, base, target)
        )
