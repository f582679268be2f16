# Application layer: services that orchestrate domain and infrastructure.

from app.application.exceptions import ApplicationError, IdempotencyStoreError
from app.application.request_service import RequestService

__all__ = [
    "ApplicationError",
    "IdempotencyStoreError",
    "RequestService",
]
