from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from core import errors
from core.http import cancel_on_disconnect


class FakeRequest:
    def __init__(self, disconnect_after: int) -> None:
        self.url = SimpleNamespace(path="/create")
        self._polls = 0
        self._disconnect_after = disconnect_after

    async def is_disconnected(self) -> bool:
        self._polls += 1
        return self._polls >= self._disconnect_after


@pytest.mark.asyncio
async def test_returns_result_when_work_finishes():
    async def work():
        return "done"

    assert await cancel_on_disconnect(FakeRequest(disconnect_after=100), work()) == "done"


@pytest.mark.asyncio
async def test_disconnect_cancels_work():
    cancelled = asyncio.Event()

    async def work():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(errors.ClientDisconnected):
        await cancel_on_disconnect(FakeRequest(disconnect_after=2), work(), poll_interval_s=0.01)

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_work_errors_propagate():
    async def work():
        raise errors.StoreError("down")

    with pytest.raises(errors.StoreError):
        await cancel_on_disconnect(FakeRequest(disconnect_after=100), work())
