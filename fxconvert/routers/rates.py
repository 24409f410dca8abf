from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from fxconvert.services.money import round2, round4
from fxconvert.services.rates.conversion import CurrencyConverter

"""Rates router exposing the conversion engine over HTTP.

Endpoints:
    - GET /rates/{base}                          -> rates sorted by rate descending
    - GET /convert?base=USD&target=EUR&amount=10 -> single conversion

All requests share the converter (and therefore the response cache) stored on
``app.state`` by the app factory. Error kinds are turned into status codes by
the handlers registered in ``fxconvert.main``.
"""

router = APIRouter(tags=["rates"])


def get_converter(request: Request) -> CurrencyConverter:
    return request.app.state.converter


class RateOut(BaseModel):
    code: str
    rate: float


class RateListOut(BaseModel):
    base: str
    rates: List[RateOut]


class ConversionOut(BaseModel):
    base: str
    target: str
    amount: float
    rate: float
    converted_amount: float
    display_rate: float
    display_amount: float


@router.get("/rates/{base}", response_model=RateListOut, summary="List rates for a base currency")
async def list_rates(
    base: str,
    converter: CurrencyConverter = Depends(get_converter),
):
    rates = await converter.list_rates(base)
    return RateListOut(
        base=base.strip().upper(),
        rates=[RateOut(code=code, rate=rate) for code, rate in rates],
    )


@router.get("/convert", response_model=ConversionOut, summary="Convert an amount between two currencies")
async def convert(
    base: str = Query(..., min_length=1, description="Base currency (e.g. USD)"),
    target: str = Query(..., min_length=1, description="Target currency (e.g. EUR)"),
    amount: float = Query(
        1.0, ge=0, allow_inf_nan=False, description="Amount in the base currency"
    ),
    converter: CurrencyConverter = Depends(get_converter),
):
    result = await converter.convert(base, target, amount)
    return ConversionOut(
        base=result.base,
        target=result.target,
        amount=result.amount,
        rate=result.rate,
        converted_amount=result.converted_amount,
        display_rate=round4(result.rate),
        display_amount=round2(result.converted_amount),
    )
