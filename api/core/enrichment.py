"""
Enrichment HTTP client.

Used endpoint:
- GET <ENRICHMENT_URL>?regNum=<number>
    -> {"regNum": "...", "mark": "...", "model": "...", "year": 2002,
        "owner": {"name": "...", "surname": "...", "patronymic": "..."}}

The payload is validated against a strict schema; anything that does not
match is a `DecodeError` for that one number.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import errors


class Owner(BaseModel):
    model_config = ConfigDict(strict=True)

    name: str
    surname: str
    patronymic: str | None = None


class EnrichedInfo(BaseModel):
    model_config = ConfigDict(strict=True, populate_by_name=True)

    reg_num: str = Field(alias="regNum")
    make: str = Field(alias="mark")
    model: str
    year: int
    owner: Owner


def _normalize_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise errors.EnrichmentError("ENRICHMENT_URL is empty.")
    return url


def parse_info(data: Any) -> EnrichedInfo:
    if not isinstance(data, dict):
        raise errors.DecodeError("Enrichment payload is not a JSON object.")
    try:
        return EnrichedInfo.model_validate(data)
    except PydanticValidationError as e:
        raise errors.DecodeError(f"Enrichment payload does not match schema: {e.error_count()} error(s)") from e


class EnrichmentClient:
    """
    Thin async client around one shared `httpx.AsyncClient`.

    Safe to share between concurrent tasks. `timeout_s` is a hard deadline
    for a whole call (connect, send, read); the request is cancelled when it
    elapses.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = _normalize_url(url)
        self.timeout_s = timeout_s
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> EnrichmentClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def fetch(self, reg_num: str) -> EnrichedInfo:
        try:
            async with asyncio.timeout(self.timeout_s):
                resp = await self._client.get(self.url, params={"regNum": reg_num})
        except (TimeoutError, httpx.TimeoutException) as e:
            raise errors.EnrichmentTimeoutError(f"Enrichment call timed out for {reg_num}.") from e
        except httpx.HTTPError as e:
            raise errors.TransportError(f"Enrichment call failed: {e}") from e

        if not resp.is_success:
            # Avoid dumping huge bodies; include a small snippet.
            raise errors.RemoteStatusError(resp.status_code, resp.text[:300])

        try:
            data = resp.json()
        except ValueError as e:
            raise errors.DecodeError("Enrichment service returned invalid JSON.") from e

        return parse_info(data)
