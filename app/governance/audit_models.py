"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: what happened, who did it, to which entity, when (UTC),
    and a free-form details payload (previous/next values, timestamps).
    """

    action: str
    actor_id: Optional[str]
    target_id: Optional[str]
    details: Optional[Dict[str, Any]]
    correlation_id: Optional[str]
    timestamp_utc: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "action": self.action,
            "actor_id": self.actor_id,
            "target_id": self.target_id,
            "details": self.details,
            "correlation_id": self.correlation_id,
            "timestamp_utc": self.timestamp_utc.isoformat(),
        }
