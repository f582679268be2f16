"""Pydantic schemas for the change-request API. Strict validation, no DB or infrastructure."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.domain.models.request import ChangeRequest, RequestStatus, RequestType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ChangeRequestCreate(BaseModel):
    """Body of POST /requests."""

    type: RequestType
    project_id: str = Field(..., min_length=1, description="Project the mutation affects")
    target_id: Optional[str] = Field(None, description="Type-dependent secondary reference (tag id)")
    entry_id: Optional[str] = Field(None, description="Changelog entry reference")

    @field_validator("project_id", "target_id", "entry_id")
    @classmethod
    def strip_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class DecisionCreate(BaseModel):
    """Body of PATCH /requests/{id}. Only terminal statuses are valid decisions."""

    decision: RequestStatus

    @field_validator("decision")
    @classmethod
    def decision_must_be_terminal(cls, v: RequestStatus) -> RequestStatus:
        if v == RequestStatus.PENDING:
            raise ValueError("decision must be APPROVED or REJECTED")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ChangeRequestResponse(BaseModel):
    id: str
    type: RequestType
    status: RequestStatus
    proposer_id: str
    project_id: str
    target_id: Optional[str] = None
    entry_id: Optional[str] = None
    reviewer_id: Optional[str] = None
    created_at: datetime
    reviewed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_domain(cls, request: ChangeRequest) -> "ChangeRequestResponse":
        return cls.model_validate(request)


class SubmissionResponse(BaseModel):
    """Outcome of POST /requests: applied directly or filed for review."""

    outcome: str
    message: str
    request: Optional[ChangeRequestResponse] = None


class DecisionResponse(BaseModel):
    code: str
    message: str
    request: ChangeRequestResponse
