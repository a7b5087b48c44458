"""
Plate business logic.

Scope:
- batch create + enrichment (one independent unit of work per number)
- batch delete
- lookups by id / substring / region, update by id

Batch units run inside one `asyncio.TaskGroup` and are throttled by a
semaphore. The group join is the completion barrier: each launched unit
produces exactly one outcome, and the batch returns only after all of them
finish. Units convert store/enrichment failures into outcomes instead of
raising, so one number never affects its siblings.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Protocol, TypeVar

from core import errors
from core.enrichment import EnrichedInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REGION_RE = re.compile(r"^\w+$")


class NumberStore(Protocol):
    async def create_number(self, number: str) -> str: ...

    async def delete_number(self, number_id: str) -> bool: ...

    async def get_number(self, number_id: str) -> str | None: ...

    async def find_by_prefix(self, prefix: str) -> list[str]: ...

    async def find_by_region(self, region: str) -> list[str]: ...

    async def update_number(self, number_id: str, new_number: str) -> str | None: ...

    async def save_enriched(self, info: EnrichedInfo, *, number_id: str | None = None) -> None: ...


class Enricher(Protocol):
    async def fetch(self, reg_num: str) -> EnrichedInfo: ...


class ErrorKind(str, enum.Enum):
    PERSIST_FAILED = "PersistFailed"
    TRANSPORT_FAILED = "TransportFailed"
    REMOTE_STATUS_ERROR = "RemoteStatusError"
    DECODE_FAILED = "DecodeFailed"
    ENRICHED_PERSIST_FAILED = "EnrichedPersistFailed"
    TIMEOUT = "Timeout"


# Client-facing text; the underlying error is only logged.
_DETAILS = {
    ErrorKind.PERSIST_FAILED: "could not store number",
    ErrorKind.TRANSPORT_FAILED: "enrichment service unreachable",
    ErrorKind.REMOTE_STATUS_ERROR: "enrichment service returned an error",
    ErrorKind.DECODE_FAILED: "enrichment response was malformed",
    ErrorKind.ENRICHED_PERSIST_FAILED: "could not store enrichment",
    ErrorKind.TIMEOUT: "operation timed out",
}


@dataclass(frozen=True)
class BatchOutcome:
    identifier: str
    id: str | None = None
    created: bool = False
    enriched: bool = False
    error: ErrorKind | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> dict:
        data = asdict(self)
        data["error"] = self.error.value if self.error is not None else None
        return data


@dataclass(frozen=True)
class BatchResult:
    outcomes: list[BatchOutcome]

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if o.created)

    @property
    def enriched(self) -> int:
        return sum(1 for o in self.outcomes if o.enriched)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)


@dataclass(frozen=True)
class DeleteOutcome:
    id: str
    deleted: bool = False
    error: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


async def _run_bounded(
    items: Sequence[str],
    unit: Callable[[str], Awaitable[T]],
    *,
    concurrency: int,
) -> list[T]:
    """
    Run `unit(item)` for every item, at most `concurrency` at a time.

    Results come back in input order. Cancelling the caller cancels every
    unit still running.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")
    semaphore = asyncio.Semaphore(concurrency)

    async def bounded(item: str) -> T:
        async with semaphore:
            return await unit(item)

    async with asyncio.TaskGroup() as tg:
        tasks = [tg.create_task(bounded(item)) for item in items]
    return [t.result() for t in tasks]


def _enrichment_error_kind(exc: errors.EnrichmentError) -> ErrorKind:
    if isinstance(exc, errors.DeadlineExceeded):
        return ErrorKind.TIMEOUT
    if isinstance(exc, errors.RemoteStatusError):
        return ErrorKind.REMOTE_STATUS_ERROR
    if isinstance(exc, errors.DecodeError):
        return ErrorKind.DECODE_FAILED
    return ErrorKind.TRANSPORT_FAILED


async def create_and_enrich(identifier: str, *, store: NumberStore, enricher: Enricher) -> BatchOutcome:
    """
    One unit of work: persist, enrich, store enrichment.

    Each step runs only if the previous one succeeded. Always returns an
    outcome for store/enrichment failures.
    """
    try:
        number_id = await store.create_number(identifier)
    except errors.StoreError as e:
        kind = ErrorKind.TIMEOUT if isinstance(e, errors.DeadlineExceeded) else ErrorKind.PERSIST_FAILED
        logger.error("create_failed identifier=%s kind=%s error=%s", identifier, kind.value, e)
        return BatchOutcome(identifier=identifier, error=kind, detail=_DETAILS[kind])

    logger.info("create_success identifier=%s id=%s", identifier, number_id)

    try:
        info = await enricher.fetch(identifier)
    except errors.EnrichmentError as e:
        kind = _enrichment_error_kind(e)
        logger.error("enrich_failed identifier=%s kind=%s error=%s", identifier, kind.value, e)
        return BatchOutcome(identifier=identifier, id=number_id, created=True, error=kind, detail=_DETAILS[kind])

    try:
        await store.save_enriched(info, number_id=number_id)
    except errors.StoreError as e:
        kind = ErrorKind.TIMEOUT if isinstance(e, errors.DeadlineExceeded) else ErrorKind.ENRICHED_PERSIST_FAILED
        logger.error("enrich_store_failed identifier=%s kind=%s error=%s", identifier, kind.value, e)
        return BatchOutcome(identifier=identifier, id=number_id, created=True, error=kind, detail=_DETAILS[kind])

    logger.info("enrich_success identifier=%s id=%s", identifier, number_id)
    return BatchOutcome(identifier=identifier, id=number_id, created=True, enriched=True)


async def process_batch(
    identifiers: Sequence[str],
    *,
    store: NumberStore,
    enricher: Enricher,
    concurrency: int,
) -> BatchResult:
    async def unit(identifier: str) -> BatchOutcome:
        return await create_and_enrich(identifier, store=store, enricher=enricher)

    outcomes = await _run_bounded(identifiers, unit, concurrency=concurrency)
    result = BatchResult(outcomes=outcomes)
    logger.info(
        "batch_complete size=%s created=%s enriched=%s failed=%s",
        len(outcomes),
        result.created,
        result.enriched,
        result.failed,
    )
    return result


async def delete_batch(
    ids: Sequence[str],
    *,
    store: NumberStore,
    concurrency: int,
) -> list[DeleteOutcome]:
    async def unit(number_id: str) -> DeleteOutcome:
        try:
            deleted = await store.delete_number(number_id)
        except errors.StoreError as e:
            logger.error("delete_failed id=%s error=%s", number_id, e)
            error = "timeout" if isinstance(e, errors.DeadlineExceeded) else "delete failed"
            return DeleteOutcome(id=number_id, error=error)
        logger.info("delete_success id=%s deleted=%s", number_id, deleted)
        return DeleteOutcome(id=number_id, deleted=deleted)

    return await _run_bounded(ids, unit, concurrency=concurrency)


def validate_region(region: str) -> str:
    region = (region or "").strip()
    if not _REGION_RE.fullmatch(region) or "_" in region:
        raise errors.ValidationError("Region must be alphanumeric.")
    return region


async def get_number(number_id: str, *, store: NumberStore) -> str | None:
    return await store.get_number(number_id)


async def find_by_prefix(prefix: str, *, store: NumberStore) -> list[str]:
    return await store.find_by_prefix(prefix)


async def find_by_region(region: str, *, store: NumberStore) -> list[str]:
    return await store.find_by_region(validate_region(region))


async def update_number(number_id: str, new_number: str, *, store: NumberStore) -> str:
    updated = await store.update_number(number_id, new_number)
    if updated is None:
        raise errors.NotFoundError(f"Number {number_id} not found.")
    return updated
