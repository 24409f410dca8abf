from __future__ import annotations

"""Single-shot async HTTP GET with status classification.

No retries and no timeout override: one request per call, using httpx's own
transport defaults. The outcome is mapped onto the error kinds in
``fxconvert.core.errors`` so callers never see raw httpx exceptions.
"""
import logging
from typing import Optional

import httpx

from fxconvert.core.errors import (
    InvalidCurrency,
    RateLimitExceeded,
    TransportError,
    UnexpectedServiceError,
)

logger = logging.getLogger("fxconvert.http")


def _body_text(resp: httpx.Response) -> str:
    try:
        return resp.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TransportError(f"Response body is not valid UTF-8: {e}") from e


async def get_text(
    url: str, *, client: Optional[httpx.AsyncClient] = None, label: str = ""
) -> str:
    """GET ``url`` and return the body text of a 200 response.

    ``label`` is what gets logged instead of the URL, which may embed a
    credential.
    """
    try:
        if client is not None:
            resp = await client.get(url)
        else:
            async with httpx.AsyncClient() as owned:
                resp = await owned.get(url)
    except httpx.HTTPError as e:
        logger.warning("transport failure for %s: %s", label, type(e).__name__)
        raise TransportError(f"Network error: {e}") from e

    code = resp.status_code
    logger.debug("GET %s -> %s", label, code)
    if code == httpx.codes.OK:
        return _body_text(resp)
    if code == httpx.codes.NOT_FOUND:
        raise InvalidCurrency()
    if code == httpx.codes.TOO_MANY_REQUESTS:
        raise RateLimitExceeded()
    try:
        body: Optional[str] = _body_text(resp)
    except TransportError:
        body = None
    raise UnexpectedServiceError(code, body)
