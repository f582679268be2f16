# app/infrastructure/database/models.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.infrastructure.database.session import Base

JsonType = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedModel(Base):
    __abstract__ = True

    id = Column(String(36), primary_key=True, default=_uuid)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Project(TimestampedModel):
    __tablename__ = "projects"

    name = Column(String, nullable=False)
    default_tags = Column(JsonType, nullable=False, default=list)
    require_approval = Column(Boolean, nullable=False, default=True)
    allow_auto_publish = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), onupdate=_utcnow)

    changelog = relationship("Changelog", back_populates="project", uselist=False)


class Changelog(TimestampedModel):
    __tablename__ = "changelogs"

    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    project = relationship("Project", back_populates="changelog")
    entries = relationship("ChangelogEntry", back_populates="changelog")


changelog_entry_tags = Table(
    "changelog_entry_tags",
    Base.metadata,
    Column(
        "entry_id",
        String(36),
        ForeignKey("changelog_entries.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        String(36),
        ForeignKey("changelog_tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class ChangelogEntry(TimestampedModel):
    __tablename__ = "changelog_entries"

    changelog_id = Column(
        String(36),
        ForeignKey("changelogs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    version = Column(String, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)

    changelog = relationship("Changelog", back_populates="entries")
    tags = relationship("ChangelogTag", secondary=changelog_entry_tags, back_populates="entries")


class ChangelogTag(TimestampedModel):
    __tablename__ = "changelog_tags"

    name = Column(String, nullable=False, unique=True)
    color = Column(String, nullable=True)

    entries = relationship("ChangelogEntry", secondary=changelog_entry_tags, back_populates="tags")


class ChangeRequestRecord(TimestampedModel):
    """One row per proposed mutation. Only the workflow orchestrator writes status."""

    __tablename__ = "change_requests"

    type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="PENDING", index=True)
    proposer_id = Column(String, nullable=False, index=True)
    reviewer_id = Column(String, nullable=True, index=True)
    project_id = Column(
        String(36),
        ForeignKey("projects.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    target_id = Column(String, nullable=True)
    entry_id = Column(
        String(36),
        ForeignKey("changelog_entries.id", ondelete="SET NULL"),
        nullable=True,
    )
    dedupe_key = Column(String, nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # At most one PENDING proposal per (type, project, target, entry).
        Index(
            "uq_change_requests_pending_dedupe",
            "dedupe_key",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )


class AuditLog(TimestampedModel):
    """Append-only. Never updated or deleted by the workflow."""

    __tablename__ = "audit_logs"

    action = Column(String, nullable=False, index=True)
    actor_id = Column(String, nullable=True, index=True)
    target_id = Column(String, nullable=True)
    details = Column(JsonType, nullable=True)
    correlation_id = Column(String, nullable=True)
