# app/main.py

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from app.api import dependencies
from app.api.middleware import (
    ActorContextMiddleware,
    AuditTriggerMiddleware,
    CorrelationIdMiddleware,
)
from app.api.routers import health, requests
from app.application.exceptions import ApplicationError
from app.config.logging import configure_logging
from app.config.settings import get_settings
from app.domain.exceptions import DomainError, DomainValidationError
from app.domain.schemas.request import ChangeRequestResponse
from app.governance.exceptions import (
    AlreadyProcessedError,
    DuplicateRequestError,
    EntityNotFoundError,
    GovernanceError,
    NotFoundError,
    ProcessorExecutionError,
    UnknownProcessorError,
)
from app.security.exceptions import AuthorizationError

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fail fast if any request type lacks a processor.
    dependencies.get_registry()
    yield
    if dependencies._publisher is not None:
        await dependencies._publisher.close()
    if dependencies._redis_client is not None:
        await dependencies._redis_client.close()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> ActorContext -> AuditTrigger.
app.add_middleware(AuditTriggerMiddleware)
app.add_middleware(ActorContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code, "message": message, **extra},
    )


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return _error(422, exc.code, exc.message)


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return _error(400, exc.code, exc.message)


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return _error(403, exc.code, exc.message)


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request, exc: NotFoundError):
    return _error(404, exc.code, exc.message)


@app.exception_handler(AlreadyProcessedError)
async def already_processed_error_handler(request, exc: AlreadyProcessedError):
    current = ChangeRequestResponse.from_domain(exc.current).model_dump(mode="json") if exc.current else None
    return _error(409, exc.code, exc.message, request=current)


@app.exception_handler(DuplicateRequestError)
async def duplicate_request_error_handler(request, exc: DuplicateRequestError):
    existing = ChangeRequestResponse.from_domain(exc.existing).model_dump(mode="json") if exc.existing else None
    return _error(409, exc.code, exc.message, request=existing)


@app.exception_handler(UnknownProcessorError)
async def unknown_processor_error_handler(request, exc: UnknownProcessorError):
    logger.error("unknown_processor", extra={"error": exc.message})
    return _error(500, exc.code, exc.message)


@app.exception_handler(EntityNotFoundError)
async def entity_not_found_error_handler(request, exc: EntityNotFoundError):
    # The target is gone; retrying the same approval cannot succeed.
    return _error(409, exc.code, exc.message, retryable=False)


@app.exception_handler(ProcessorExecutionError)
async def processor_execution_error_handler(request, exc: ProcessorExecutionError):
    # Request is still PENDING; the caller may retry.
    return _error(500, exc.code, exc.message, retryable=True)


@app.exception_handler(GovernanceError)
async def governance_error_handler(request, exc: GovernanceError):
    return _error(400, exc.code, exc.message)


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return _error(500, exc.code, exc.message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    logger.exception("unexpected_error")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "INTERNAL_FAILURE"},
    )


# Routers: /health, /requests
app.include_router(health.router)
app.include_router(requests.router, prefix="/requests")


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
