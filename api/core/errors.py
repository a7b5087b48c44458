"""
Error taxonomy shared by the store, the enrichment client and the routes.

Store and enrichment failures are explicit and separable from other runtime
errors so the batch workflow can record them per item.
"""

from __future__ import annotations


class AppError(RuntimeError):
    status_code = 500


class ValidationError(AppError):
    status_code = 400


class DeadlineExceeded(AppError):
    status_code = 504


class StoreError(AppError):
    pass


class StoreTimeoutError(StoreError, DeadlineExceeded):
    status_code = 504


class NotFoundError(AppError):
    status_code = 404


class EnrichmentError(AppError):
    status_code = 502


class TransportError(EnrichmentError):
    pass


class EnrichmentTimeoutError(TransportError, DeadlineExceeded):
    status_code = 504


class RemoteStatusError(EnrichmentError):
    def __init__(self, status: int, body: str = "") -> None:
        message = f"Enrichment service returned {status}"
        super().__init__(f"{message}: {body}" if body else message)
        self.status = status


class DecodeError(EnrichmentError):
    pass


class ClientDisconnected(AppError):
    status_code = 499
