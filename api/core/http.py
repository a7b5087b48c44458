"""
Request-scoped helpers.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import Request

from . import errors

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def cancel_on_disconnect(request: Request, work: Awaitable[T], *, poll_interval_s: float = 0.25) -> T:
    """
    Await `work` while polling the client connection.

    If the client disconnects first, `work` is cancelled (which cancels any
    tasks it started) and `ClientDisconnected` is raised.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("client_disconnected path=%s", request.url.path)
                raise errors.ClientDisconnected("Client disconnected.")
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
