"""Approval-gated mutations: submit, create, decide. RBAC enforced; audit trail; no FastAPI."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.exceptions import DomainError
from app.domain.models.request import ChangeRequest, RequestStatus, RequestType
from app.domain.validators.request_validator import (
    parse_decision,
    validate_create_fields,
    validate_identifier,
)
from app.governance.audit_logger import AuditLogger
from app.governance.exceptions import (
    AlreadyProcessedError,
    DuplicateRequestError,
    GovernanceError,
    NotFoundError,
    ProcessorExecutionError,
)
from app.governance.request_repository import ProjectRepository, RequestRepository
from app.security.access_policy import AccessDecision, AccessPolicy, ProjectFlags
from app.security.exceptions import AuthorizationError
from app.security.rbac import RBACService, Role
from app.workflows.registry import ProcessorRegistry

logger = logging.getLogger(__name__)

ACTION_CREATED = "REQUEST_CREATED"
ACTION_APPROVED = "REQUEST_APPROVED"
ACTION_REJECTED = "REQUEST_REJECTED"
ACTION_NOT_FOUND = "REQUEST_NOT_FOUND"
ACTION_DUPLICATE = "REQUEST_DUPLICATE"
ACTION_DENIED = "REQUEST_PERMISSION_DENIED"
ACTION_APPLIED_DIRECTLY = "MUTATION_APPLIED_DIRECTLY"

_DECISION_ACTIONS = {
    RequestStatus.APPROVED: ACTION_APPROVED,
    RequestStatus.REJECTED: ACTION_REJECTED,
}


@dataclass(frozen=True)
class SubmissionResult:
    """What submit() did: applied the change, or filed it for review."""

    outcome: AccessDecision
    request: Optional[ChangeRequest]
    message: str


def _affected_id(request: ChangeRequest) -> str:
    return request.target_id or request.entry_id or request.project_id


def _request_details(request: ChangeRequest, **extra: Any) -> dict[str, Any]:
    details = {
        "request_id": request.id,
        "type": request.type.value,
        "status": request.status.value,
        "proposer_id": request.proposer_id,
        "reviewer_id": request.reviewer_id,
        "project_id": request.project_id,
        "target_id": request.target_id,
        "entry_id": request.entry_id,
    }
    details.update(extra)
    return details


class ApprovalWorkflow:
    """
    Request lifecycle controller. PENDING -> APPROVED | REJECTED, exactly once.

    decide() runs the status change, the approved mutation and the decision audit
    record in one transaction. The status change is a conditional update on
    status = PENDING, so two concurrent decisions cannot both apply. Any processor
    or registry failure rolls everything back and the request stays PENDING.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        repository: RequestRepository,
        projects: ProjectRepository,
        audit_logger: AuditLogger,
        registry: ProcessorRegistry,
        policy: Optional[AccessPolicy] = None,
        rbac: Optional[RBACService] = None,
    ) -> None:
        self._session_factory = session_factory
        self._repo = repository
        self._projects = projects
        self._audit = audit_logger
        self._registry = registry
        self._rbac = rbac or RBACService()
        self._policy = policy or AccessPolicy(self._rbac)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        *,
        request_type: RequestType,
        actor_id: str,
        actor_role: Role,
        project_id: str,
        target_id: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> SubmissionResult:
        """Route a proposed mutation through the access policy: apply it, file it, or deny."""
        actor_id = validate_identifier(actor_id, "actor_id")
        validate_create_fields(request_type, project_id, target_id, entry_id)

        async with self._session_factory() as session:
            flags = await self._require_targets(session, project_id, entry_id)

        decision = self._policy.decide(actor_role, request_type, flags)
        logger.info(
            "access_policy_decided",
            extra={
                "actor_id": actor_id,
                "role": actor_role.value,
                "request_type": request_type.value,
                "project_id": project_id,
                "decision": decision.value,
            },
        )

        if decision == AccessDecision.DENY:
            await self._audit.log_best_effort(
                action=ACTION_DENIED,
                actor_id=actor_id,
                target_id=project_id,
                details={
                    "type": request_type.value,
                    "role": actor_role.value,
                    "project_requires_approval": flags.require_approval,
                    "project_allows_auto_publish": flags.allow_auto_publish,
                },
            )
            raise AuthorizationError(
                f"Role {actor_role.value} may not request {request_type.value}"
            )

        if decision == AccessDecision.APPLY_DIRECTLY:
            await self._apply_directly(
                request_type=request_type,
                actor_id=actor_id,
                actor_role=actor_role,
                project_id=project_id,
                target_id=target_id,
                entry_id=entry_id,
                flags=flags,
            )
            return SubmissionResult(
                outcome=decision,
                request=None,
                message=f"{request_type.value} applied",
            )

        created = await self.create(
            request_type=request_type,
            proposer_id=actor_id,
            project_id=project_id,
            target_id=target_id,
            entry_id=entry_id,
        )
        return SubmissionResult(
            outcome=decision,
            request=created,
            message=f"{request_type.value} submitted for admin approval",
        )

    async def create(
        self,
        *,
        request_type: RequestType,
        proposer_id: str,
        project_id: str,
        target_id: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> ChangeRequest:
        """Persist a new PENDING request. Callers reach this only after the policy required approval."""
        validate_create_fields(request_type, project_id, target_id, entry_id)
        request = ChangeRequest(
            id=str(uuid.uuid4()),
            type=request_type,
            status=RequestStatus.PENDING,
            proposer_id=validate_identifier(proposer_id, "proposer_id"),
            project_id=project_id,
            target_id=target_id,
            entry_id=entry_id,
            created_at=datetime.now(timezone.utc),
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._require_targets(session, project_id, entry_id)
                    await self._repo.add(session, request)
                    await self._audit.log_action(
                        session,
                        action=ACTION_CREATED,
                        actor_id=proposer_id,
                        target_id=_affected_id(request),
                        details=_request_details(request),
                    )
        except DuplicateRequestError as e:
            await self._audit.log_best_effort(
                action=ACTION_DUPLICATE,
                actor_id=proposer_id,
                target_id=_affected_id(request),
                details=_request_details(
                    request,
                    existing_request_id=e.existing.id if e.existing else None,
                ),
            )
            logger.info(
                "request_duplicate",
                extra={"request_type": request_type.value, "project_id": project_id},
            )
            raise
        logger.info(
            "request_created",
            extra={"request_id": request.id, "request_type": request_type.value, "project_id": project_id},
        )
        return request

    async def _require_targets(
        self, session: AsyncSession, project_id: str, entry_id: Optional[str]
    ) -> ProjectFlags:
        """Flags of an existing project; NotFoundError if it or the named entry is missing."""
        flags = await self._projects.get_flags(session, project_id)
        if flags is None:
            raise NotFoundError(f"Project not found: {project_id}")
        if entry_id and not await self._projects.has_entry(session, project_id, entry_id):
            raise NotFoundError(f"Changelog entry not found in project {project_id}: {entry_id}")
        return flags

    async def _apply_directly(
        self,
        *,
        request_type: RequestType,
        actor_id: str,
        actor_role: Role,
        project_id: str,
        target_id: Optional[str],
        entry_id: Optional[str],
        flags: ProjectFlags,
    ) -> None:
        # Transient request: never persisted, only gives the processor its typed input.
        now = datetime.now(timezone.utc)
        transient = ChangeRequest(
            id=f"direct-{uuid.uuid4()}",
            type=request_type,
            status=RequestStatus.APPROVED,
            proposer_id=actor_id,
            project_id=project_id,
            target_id=target_id,
            entry_id=entry_id,
            created_at=now,
            reviewer_id=actor_id,
            reviewed_at=now,
        )
        async with self._session_factory() as session:
            async with session.begin():
                await self._run_processor(session, transient)
                await self._audit.log_action(
                    session,
                    action=ACTION_APPLIED_DIRECTLY,
                    actor_id=actor_id,
                    target_id=_affected_id(transient),
                    details={
                        "type": request_type.value,
                        "role": actor_role.value,
                        "project_id": project_id,
                        "target_id": target_id,
                        "entry_id": entry_id,
                        "project_requires_approval": flags.require_approval,
                        "project_allows_auto_publish": flags.allow_auto_publish,
                        "applied_at": now.isoformat(),
                    },
                )
        logger.info(
            "mutation_applied_directly",
            extra={"actor_id": actor_id, "request_type": request_type.value, "project_id": project_id},
        )

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    async def decide(
        self,
        *,
        request_id: str,
        decision: RequestStatus | str,
        reviewer_id: str,
        reviewer_role: Role,
    ) -> ChangeRequest:
        """Approve or reject a PENDING request. Returns the request in its terminal state."""
        self._rbac.check_permission(reviewer_role, "approve")
        status = parse_decision(decision)
        request_id = validate_identifier(request_id, "request_id")
        reviewer_id = validate_identifier(reviewer_id, "reviewer_id")

        try:
            decided = await self._decide_in_transaction(request_id, status, reviewer_id)
        except NotFoundError:
            await self._audit.log_best_effort(
                action=ACTION_NOT_FOUND,
                actor_id=reviewer_id,
                target_id=request_id,
                details={"decision": status.value},
            )
            logger.info("request_not_found", extra={"request_id": request_id, "reviewer_id": reviewer_id})
            raise
        except AlreadyProcessedError as e:
            logger.info(
                "request_already_processed",
                extra={
                    "request_id": request_id,
                    "reviewer_id": reviewer_id,
                    "current_status": e.current.status.value if e.current else None,
                },
            )
            raise
        except (GovernanceError, DomainError) as e:
            logger.error(
                "request_decision_failed",
                extra={"request_id": request_id, "decision": status.value, "error": e.message},
            )
            raise

        logger.info(
            "request_decided",
            extra={"request_id": request_id, "decision": status.value, "reviewer_id": reviewer_id},
        )
        return decided

    async def _decide_in_transaction(
        self, request_id: str, status: RequestStatus, reviewer_id: str
    ) -> ChangeRequest:
        async with self._session_factory() as session:
            async with session.begin():
                current = await self._repo.get(session, request_id)
                if current is None:
                    raise NotFoundError(f"Request not found: {request_id}")
                if not current.is_pending:
                    raise AlreadyProcessedError(
                        f"Request already processed: {request_id} (status={current.status.value})",
                        current=current,
                    )

                reviewed_at = datetime.now(timezone.utc)
                decided = current.decided(status, reviewer_id, reviewed_at)
                won = await self._repo.transition(session, request_id, status, reviewer_id, reviewed_at)
                if not won:
                    # Another reviewer committed first.
                    latest = await self._repo.get(session, request_id)
                    state = latest.status.value if latest else "DELETED"
                    raise AlreadyProcessedError(
                        f"Request already processed: {request_id} (status={state})",
                        current=latest,
                    )

                if status == RequestStatus.APPROVED:
                    await self._run_processor(session, decided)

                await self._audit.log_action(
                    session,
                    action=_DECISION_ACTIONS[status],
                    actor_id=reviewer_id,
                    target_id=_affected_id(decided),
                    details=_request_details(
                        decided,
                        previous_status=current.status.value,
                        processed_at=reviewed_at.isoformat(),
                        processed_by=reviewer_id,
                    ),
                )
        return decided

    async def _run_processor(self, session: AsyncSession, request: ChangeRequest) -> None:
        processor = self._registry.resolve(request.type)
        try:
            await processor.apply(session, request)
        except (GovernanceError, DomainError):
            raise
        except SQLAlchemyError as e:
            raise ProcessorExecutionError(
                f"Failed to process {request.type.value}: {e.__class__.__name__}: {e}"
            ) from e
