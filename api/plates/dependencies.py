"""
Dependencies for plate routes.

The lifespan in `api/main.py` puts settings and the enrichment client on
`app.state`; tests swap these out via `app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Request

from core.enrichment import EnrichmentClient
from core.settings import Settings

from . import repository
from .service import Enricher, NumberStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store() -> NumberStore:
    # The repository module satisfies the store protocol structurally.
    return repository  # type: ignore[return-value]


def get_enricher(request: Request) -> Enricher:
    client: EnrichmentClient = request.app.state.enrichment_client
    return client
