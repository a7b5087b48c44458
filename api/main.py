from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core import db, errors
from core.enrichment import EnrichmentClient
from core.logs import configure_logging
from core.settings import Settings, load_settings
from plates import repository as plates_repository
from plates import router as plates_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # Initialize the DB pool once per process.
    await db.init_pool(
        settings.database_url,
        command_timeout=settings.store_timeout_s,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    client = EnrichmentClient(settings.enrichment_url, timeout_s=settings.enrichment_timeout_s)
    try:
        await plates_repository.migrate()
        logger.debug("migrate_success")
        app.state.enrichment_client = client
        yield
    finally:
        await client.aclose()
        await db.close_pool()


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # Drop `ctx`/`input`, they may hold non-JSON values.
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": _jsonable_errors(exc)})


async def _app_error_handler(_: Request, exc: errors.AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.env)

    app = FastAPI(title="plates", lifespan=lifespan)
    app.state.settings = settings

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(errors.AppError, _app_error_handler)

    app.include_router(plates_router.router, tags=["plates"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> str:
        return "Start page"

    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
