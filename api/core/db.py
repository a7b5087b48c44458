"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

Every helper call has its own short deadline (`command_timeout`), covering
both waiting for a pooled connection and running the statement. Driver
failures are translated into `errors.StoreError`, and an elapsed deadline
into `errors.StoreTimeoutError`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Iterator
from typing import Any

import asyncpg

from . import errors

_pool: asyncpg.Pool | None = None
_call_timeout: float = 2.0


async def init_pool(
    dsn: str,
    *,
    command_timeout: float = 2.0,
    min_size: int = 1,
    max_size: int = 10,
) -> None:
    global _pool, _call_timeout
    if _pool is not None:
        return None
    _call_timeout = command_timeout
    _pool = await asyncpg.create_pool(
        dsn=dsn,
        min_size=min_size,
        max_size=max_size,
        command_timeout=command_timeout,
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


@contextlib.asynccontextmanager
async def _call() -> AsyncIterator[None]:
    """
    Deadline and error translation for one helper call.

    The deadline also covers waiting for a pooled connection, which
    `command_timeout` does not.
    """
    with _translate_errors():
        async with asyncio.timeout(_call_timeout):
            yield


@contextlib.contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except asyncio.TimeoutError as e:
        raise errors.StoreTimeoutError("Database call timed out.") from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        raise errors.StoreError(f"Database call failed: {e}") from e


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    async with _call():
        row = await pool().fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    async with _call():
        rows = await pool().fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL).

    Returns the command status tag, e.g. "DELETE 1".
    """
    async with _call():
        return await pool().execute(sql, *args)
