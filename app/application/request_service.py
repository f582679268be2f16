"""Change-request application service. Wraps the approval workflow with idempotent submission and notifications."""

import logging
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.exceptions import IdempotencyStoreError
from app.domain.models.request import ChangeRequest, RequestStatus, RequestType
from app.domain.schemas.request import ChangeRequestResponse, SubmissionResponse
from app.governance.approval_workflow import ApprovalWorkflow
from app.governance.exceptions import NotFoundError
from app.governance.request_repository import RequestRepository
from app.infrastructure.cache.redis_client import RedisClient
from app.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from app.security.rbac import RBACService, Role

IDEMPOTENCY_PREFIX = "idempotency:requests:"
EXCHANGE_CHANGE_REQUESTS = "change_requests"
ROUTING_REQUEST_DECIDED = "request.decided"


def _idempotency_key(actor_id: str, idempotency_key: str) -> str:
    return f"{IDEMPOTENCY_PREFIX}{actor_id}:{idempotency_key}"


class RequestService:
    """
    Application-layer orchestration only. No HTTP, no FastAPI.
    The workflow's transaction is authoritative; the idempotency cache and the
    decision notification are secondary and run after it commits. A failed
    notification is logged and never undoes a decision.
    """

    def __init__(
        self,
        workflow: ApprovalWorkflow,
        repository: RequestRepository,
        session_factory: async_sessionmaker[AsyncSession],
        redis_client: RedisClient,
        publisher: RabbitMQPublisher,
        logger: logging.Logger,
        *,
        idempotency_ttl: int = 300,
        notifications_enabled: bool = True,
        rbac: Optional[RBACService] = None,
    ) -> None:
        self._workflow = workflow
        self._repository = repository
        self._session_factory = session_factory
        self._redis = redis_client
        self._publisher = publisher
        self._logger = logger
        self._idempotency_ttl = idempotency_ttl
        self._notifications_enabled = notifications_enabled
        self._rbac = rbac or RBACService()

    async def submit(
        self,
        *,
        request_type: RequestType,
        actor_id: str,
        actor_role: Role,
        project_id: str,
        target_id: Optional[str] = None,
        entry_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> SubmissionResponse:
        """Submit a mutation. With an idempotency key, a retried call replays the first response."""
        cache_key = _idempotency_key(actor_id, idempotency_key) if idempotency_key else None
        if cache_key:
            try:
                cached = await self._redis.get_cache(cache_key)
            except Exception as e:
                self._logger.error("idempotency_lookup_failed", extra={"actor_id": actor_id, "error": str(e)})
                raise IdempotencyStoreError(f"Idempotency store unavailable: {e}") from e
            if cached:
                self._logger.info("idempotent_replay", extra={"actor_id": actor_id})
                return SubmissionResponse.model_validate_json(cached)

        result = await self._workflow.submit(
            request_type=request_type,
            actor_id=actor_id,
            actor_role=actor_role,
            project_id=project_id,
            target_id=target_id,
            entry_id=entry_id,
        )
        response = SubmissionResponse(
            outcome=result.outcome.value,
            message=result.message,
            request=ChangeRequestResponse.from_domain(result.request) if result.request else None,
        )

        if cache_key:
            try:
                await self._redis.set_cache(cache_key, response.model_dump_json(), ttl=self._idempotency_ttl)
            except Exception as e:
                # The submission has already committed.
                self._logger.error("idempotency_cache_failed", extra={"actor_id": actor_id, "error": str(e)})
                return response
            self._logger.info("idempotency_cached", extra={"actor_id": actor_id})
        return response

    async def decide(
        self,
        *,
        request_id: str,
        decision: RequestStatus | str,
        reviewer_id: str,
        reviewer_role: Role,
    ) -> ChangeRequest:
        decided = await self._workflow.decide(
            request_id=request_id,
            decision=decision,
            reviewer_id=reviewer_id,
            reviewer_role=reviewer_role,
        )
        await self._notify_decided(decided)
        return decided

    async def list_pending(
        self,
        *,
        actor_id: str,
        actor_role: Role,
        project_id: Optional[str] = None,
    ) -> Sequence[ChangeRequest]:
        """Admins see every pending request; everyone else only their own."""
        self._rbac.check_permission(actor_role, "view")
        proposer_id = None if actor_role == Role.ADMIN else actor_id
        async with self._session_factory() as session:
            return await self._repository.list_pending(
                session, project_id=project_id, proposer_id=proposer_id
            )

    async def get(self, request_id: str) -> ChangeRequest:
        async with self._session_factory() as session:
            request = await self._repository.get(session, request_id)
        if request is None:
            raise NotFoundError(f"Request not found: {request_id}")
        return request

    async def _notify_decided(self, request: ChangeRequest) -> None:
        if not self._notifications_enabled:
            return
        message = {
            "request_id": request.id,
            "type": request.type.value,
            "status": request.status.value,
            "proposer_id": request.proposer_id,
            "reviewer_id": request.reviewer_id,
            "project_id": request.project_id,
            "reviewed_at": request.reviewed_at.isoformat() if request.reviewed_at else None,
        }
        try:
            await self._publisher.publish(
                EXCHANGE_CHANGE_REQUESTS,
                ROUTING_REQUEST_DECIDED,
                message,
                f"{request.id}:{request.status.value}",
            )
        except Exception as e:
            self._logger.error(
                "decision_notification_failed",
                extra={"request_id": request.id, "error": str(e)},
            )
            # Do not re-raise: the decision is already committed.
            return
        self._logger.info("decision_notification_published", extra={"request_id": request.id})
