"""Domain schemas. Request/response and validation."""

from app.domain.schemas.request import (
    ChangeRequestCreate,
    ChangeRequestResponse,
    DecisionCreate,
    DecisionResponse,
    SubmissionResponse,
)

__all__ = [
    "ChangeRequestCreate",
    "ChangeRequestResponse",
    "DecisionCreate",
    "DecisionResponse",
    "SubmissionResponse",
]
