"""FastAPI dependency injection: Redis, publisher, session factory, workflow, RequestService, actor."""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.request_service import RequestService
from app.config.settings import get_settings
from app.governance.approval_workflow import ApprovalWorkflow
from app.governance.audit_logger import AuditLogger
from app.infrastructure.cache.redis_client import RedisClient
from app.infrastructure.database.audit_repository_db import DbAuditRepository
from app.infrastructure.database.request_repository_db import (
    DbProjectRepository,
    DbRequestRepository,
)
from app.infrastructure.database.session import AsyncSessionLocal
from app.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from app.security.rbac import Role
from app.workflows.registry import ProcessorRegistry, default_registry

_redis_client: RedisClient | None = None
_publisher: RabbitMQPublisher | None = None


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role


def get_redis_client() -> RedisClient:
    """Return singleton Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client


def get_publisher() -> RabbitMQPublisher:
    """Return singleton RabbitMQ publisher."""
    global _publisher
    if _publisher is None:
        _publisher = RabbitMQPublisher()
    return _publisher


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


@lru_cache
def get_registry() -> ProcessorRegistry:
    """Built once; a request type without a processor fails here, at startup."""
    return default_registry()


def get_workflow(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    registry: Annotated[ProcessorRegistry, Depends(get_registry)],
) -> ApprovalWorkflow:
    return ApprovalWorkflow(
        session_factory=session_factory,
        repository=DbRequestRepository(),
        projects=DbProjectRepository(),
        audit_logger=AuditLogger(DbAuditRepository(), session_factory=session_factory),
        registry=registry,
    )


async def get_request_service(
    workflow: Annotated[ApprovalWorkflow, Depends(get_workflow)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    redis: Annotated[RedisClient, Depends(get_redis_client)],
    publisher: Annotated[RabbitMQPublisher, Depends(get_publisher)],
) -> RequestService:
    settings = get_settings()
    return RequestService(
        workflow=workflow,
        repository=DbRequestRepository(),
        session_factory=session_factory,
        redis_client=redis,
        publisher=publisher,
        logger=logging.getLogger("app.application.request_service"),
        idempotency_ttl=settings.idempotency_ttl_seconds,
        notifications_enabled=settings.notifications_enabled,
    )


def get_actor(request: Request) -> Actor:
    """Actor resolved by ActorContextMiddleware. 401 if the caller is anonymous."""
    actor_id = getattr(request.state, "actor_id", None)
    role = getattr(request.state, "actor_role", None)
    if not actor_id or role is None:
        raise HTTPException(status_code=401, detail="X-Actor-ID and X-Actor-Role headers are required")
    return Actor(id=actor_id, role=role)
