# scripts/init_db.py
import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import argparse
import asyncio

from sqlalchemy import text

from app.infrastructure.database import models  # noqa: F401  (registers tables)
from app.infrastructure.database.models import Changelog, Project
from app.infrastructure.database.session import AsyncSessionLocal, Base, engine


async def init_db(seed: bool) -> None:
    async with engine.begin() as conn:
        result = await conn.execute(text("SELECT 1"))
        print("DB Connected:", result.scalar())
        await conn.run_sync(Base.metadata.create_all)
        print("Tables:", ", ".join(sorted(Base.metadata.tables)))

    if not seed:
        return
    async with AsyncSessionLocal() as session:
        async with session.begin():
            project = Project(name="Demo project", default_tags=["feature", "fix", "beta"])
            session.add(project)
            await session.flush()
            session.add(Changelog(project_id=project.id))
    print("Seeded project:", project.id)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the change-request schema.")
    parser.add_argument("--seed", action="store_true", help="insert a demo project")
    args = parser.parse_args()
    asyncio.run(init_db(args.seed))
