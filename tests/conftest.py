"""Shared fixtures: in-memory SQLite (foreign keys on), seeded projects, audit lookups."""

from dataclasses import dataclass, field
from typing import Optional

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from app.governance.audit_logger import AuditLogger
from app.infrastructure.database.audit_repository_db import DbAuditRepository
from app.infrastructure.database.models import (
    AuditLog,
    Changelog,
    ChangelogEntry,
    ChangelogTag,
    Project,
)
from app.infrastructure.database.session import (
    Base,
    build_session_factory,
    enable_sqlite_foreign_keys,
)


@dataclass
class SeededProject:
    project_id: str
    changelog_id: str
    entry_ids: list[str] = field(default_factory=list)
    tag_ids: list[str] = field(default_factory=list)


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def audit_logger(session_factory):
    return AuditLogger(DbAuditRepository(), session_factory=session_factory)


@pytest.fixture
def seed_project(session_factory):
    async def _seed(
        *,
        name: str = "Acme",
        default_tags: Optional[list[str]] = None,
        require_approval: bool = True,
        allow_auto_publish: bool = False,
        entries: int = 0,
        tags: Optional[list[str]] = None,
    ) -> SeededProject:
        """Project with a changelog, `entries` entries, and real tags linked to every entry."""
        async with session_factory() as session:
            async with session.begin():
                project = Project(
                    name=name,
                    default_tags=list(default_tags or []),
                    require_approval=require_approval,
                    allow_auto_publish=allow_auto_publish,
                )
                session.add(project)
                await session.flush()
                changelog = Changelog(project_id=project.id)
                session.add(changelog)
                await session.flush()

                tag_rows = [ChangelogTag(id=t, name=f"{name}-{t}") for t in (tags or [])]
                session.add_all(tag_rows)
                entry_rows = [
                    ChangelogEntry(changelog_id=changelog.id, title=f"Entry {i}", content="...", tags=list(tag_rows))
                    for i in range(entries)
                ]
                session.add_all(entry_rows)
                await session.flush()
                seeded = SeededProject(
                    project_id=project.id,
                    changelog_id=changelog.id,
                    entry_ids=[e.id for e in entry_rows],
                    tag_ids=[t.id for t in tag_rows],
                )
        return seeded

    return _seed


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return await session.scalar(stmt)

    return _count


@pytest.fixture
def audit_records(session_factory):
    async def _records(action: Optional[str] = None) -> list[AuditLog]:
        async with session_factory() as session:
            stmt = select(AuditLog).order_by(AuditLog.created_at)
            if action:
                stmt = stmt.where(AuditLog.action == action)
            return list((await session.execute(stmt)).scalars().all())

    return _records
