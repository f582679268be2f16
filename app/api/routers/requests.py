"""Change-request API router: submit, list pending, get, decide."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from app.api.dependencies import Actor, get_actor, get_request_service
from app.application.request_service import RequestService
from app.domain.models.request import RequestStatus
from app.domain.schemas.request import (
    ChangeRequestCreate,
    ChangeRequestResponse,
    DecisionCreate,
    DecisionResponse,
    SubmissionResponse,
)
from app.security.access_policy import AccessDecision

router = APIRouter()

_DECISION_MESSAGES = {
    RequestStatus.APPROVED: "Request approved and applied",
    RequestStatus.REJECTED: "Request rejected",
}


@router.post("/", response_model=SubmissionResponse)
async def submit_request(
    body: ChangeRequestCreate,
    x_idempotency_key: Annotated[Optional[str], Header(alias="X-Idempotency-Key")] = None,
    actor: Annotated[Actor, Depends(get_actor)] = ...,
    service: Annotated[RequestService, Depends(get_request_service)] = ...,
):
    """Apply directly or file for approval, as the access policy decides. 201 when a request was filed."""
    response = await service.submit(
        request_type=body.type,
        actor_id=actor.id,
        actor_role=actor.role,
        project_id=body.project_id,
        target_id=body.target_id,
        entry_id=body.entry_id,
        idempotency_key=(x_idempotency_key or "").strip() or None,
    )
    status_code = 201 if response.outcome == AccessDecision.CREATE_PENDING_REQUEST.value else 200
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


@router.get("/", response_model=list[ChangeRequestResponse])
async def list_pending_requests(
    project_id: Annotated[Optional[str], Query()] = None,
    actor: Annotated[Actor, Depends(get_actor)] = ...,
    service: Annotated[RequestService, Depends(get_request_service)] = ...,
):
    """Pending requests, newest first. Non-admins only see their own."""
    requests = await service.list_pending(actor_id=actor.id, actor_role=actor.role, project_id=project_id)
    return [ChangeRequestResponse.from_domain(r) for r in requests]


@router.get("/{request_id}", response_model=ChangeRequestResponse)
async def get_request(
    request_id: str,
    actor: Annotated[Actor, Depends(get_actor)] = ...,
    service: Annotated[RequestService, Depends(get_request_service)] = ...,
):
    return ChangeRequestResponse.from_domain(await service.get(request_id))


@router.patch("/{request_id}", response_model=DecisionResponse)
async def decide_request(
    request_id: str,
    body: DecisionCreate,
    actor: Annotated[Actor, Depends(get_actor)] = ...,
    service: Annotated[RequestService, Depends(get_request_service)] = ...,
):
    """Approve or reject. 409 with the current state if it was already decided."""
    decided = await service.decide(
        request_id=request_id,
        decision=body.decision,
        reviewer_id=actor.id,
        reviewer_role=actor.role,
    )
    return DecisionResponse(
        code=decided.status.value,
        message=_DECISION_MESSAGES[decided.status],
        request=ChangeRequestResponse.from_domain(decided),
    )
