"""
Plate API endpoints.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from core import errors
from core.http import cancel_on_disconnect
from core.settings import Settings

from . import schemas, service
from .dependencies import get_enricher, get_settings, get_store
from .service import Enricher, NumberStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_batch_size(size: int, settings: Settings) -> None:
    if size > settings.max_batch_size:
        raise HTTPException(
            status_code=400,
            detail=f"Batch too large. Max is {settings.max_batch_size} items.",
        )


@router.post("/create")
async def create_numbers(
    request: Request,
    body: schemas.CreateRequest,
    settings: Settings = Depends(get_settings),
    store: NumberStore = Depends(get_store),
    enricher: Enricher = Depends(get_enricher),
) -> dict:
    """
    Create numbers and enrich each one. Individual failures are reported per
    item in `results`; the request itself still succeeds.
    """
    _check_batch_size(len(body.reg_nums), settings)
    logger.debug("create_request size=%s", len(body.reg_nums))

    result = await cancel_on_disconnect(
        request,
        service.process_batch(
            body.reg_nums,
            store=store,
            enricher=enricher,
            concurrency=settings.batch_concurrency,
        ),
    )
    return {
        "regNums": body.reg_nums,
        "results": [o.as_dict() for o in result.outcomes],
    }


@router.post("/delete")
async def delete_numbers(
    body: schemas.DeleteRequest,
    settings: Settings = Depends(get_settings),
    store: NumberStore = Depends(get_store),
):
    """
    Delete numbers by id.

    Responds with an object, `{"ids": [...], "results": [...]}`, rather than
    the bare ids array earlier clients received. Absent ids are
    `deleted: false`; any failed delete turns the response into a 500.
    """
    _check_batch_size(len(body.ids), settings)
    logger.debug("delete_request size=%s", len(body.ids))

    outcomes = await service.delete_batch(body.ids, store=store, concurrency=settings.batch_concurrency)
    payload = {"ids": body.ids, "results": [o.as_dict() for o in outcomes]}
    if any(o.error is not None for o in outcomes):
        return JSONResponse(status_code=500, content={"detail": "delete error", **payload})
    return payload


@router.get("/list")
async def list_numbers(
    id: str | None = Query(default=None, max_length=32),
    prefix: str | None = Query(default=None, max_length=64),
    region: str | None = Query(default=None, max_length=16),
    store: NumberStore = Depends(get_store),
):
    """
    Look numbers up by exactly one of `id`, `prefix` or `region`.
    """
    given = {k: v for k, v in {"id": id, "prefix": prefix, "region": region}.items() if v}
    if not given:
        raise HTTPException(status_code=400, detail="One of id, prefix or region is required.")
    if len(given) > 1:
        raise HTTPException(status_code=400, detail="Only one of id, prefix or region is allowed.")

    try:
        if id:
            number = await service.get_number(id, store=store)
            return number or ""
        if prefix:
            return await service.find_by_prefix(prefix, store=store)
        return await service.find_by_region(region or "", store=store)
    except errors.ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except errors.StoreError as e:
        logger.error("list_failed params=%s error=%s", given, e)
        raise HTTPException(status_code=500, detail="list error") from e


@router.post("/update")
async def update_number(
    body: schemas.UpdateRequest,
    store: NumberStore = Depends(get_store),
) -> str:
    try:
        updated = await service.update_number(body.id, body.new_num, store=store)
    except (errors.NotFoundError, errors.StoreError) as e:
        logger.error("update_failed id=%s error=%s", body.id, e)
        raise HTTPException(status_code=500, detail="update error") from e

    logger.info("update_success id=%s", updated)
    return updated
