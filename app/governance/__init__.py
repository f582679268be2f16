"""Governance: audit logging and workflow exceptions. No FastAPI."""

from app.governance.audit_logger import AuditLogger
from app.governance.audit_models import AuditRecord
from app.governance.exceptions import (
    AlreadyProcessedError,
    DuplicateRequestError,
    GovernanceError,
    NotFoundError,
    ProcessorExecutionError,
    UnknownProcessorError,
)

__all__ = [
    "AlreadyProcessedError",
    "AuditLogger",
    "AuditRecord",
    "DuplicateRequestError",
    "GovernanceError",
    "NotFoundError",
    "ProcessorExecutionError",
    "UnknownProcessorError",
]
