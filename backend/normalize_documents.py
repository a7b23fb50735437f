"""
Normalize stored documents to the canonical snake_case shape.

Older clients wrote camelCase keys (currentTrial, imageNo1, birthDate,
memberId, weekId, ...), ``birthdate`` spelled in lowercase, and transient
``blob:`` image URLs. Reading already tolerates all of these; this script
rewrites every document once so the legacy keys disappear from storage.

Usage:
    python backend/normalize_documents.py [--dry-run]
"""

import asyncio
import sys
from pathlib import Path

# Force UTF-8 encoding for Windows console
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding='utf-8')

# Add backend directory to Python path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir.parent))


async def normalize_documents(dry_run: bool = False):
    """Rewrite every member, report, idea and history document."""
    from backend.app.db.base import AsyncSessionLocal, Base, engine
    from backend.app.models import AuthSession, Document  # noqa: F401
    from backend.app.schemas.idea import Idea
    from backend.app.schemas.member import Member
    from backend.app.schemas.report import Report, ReportHistory
    from backend.app.services.document_store import (
        DocumentStore,
        IDEAS,
        MEMBERS,
        REPORTS,
        REPORTS_HISTORY,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    collections = [
        (MEMBERS, Member, "id"),
        (REPORTS, Report, "id"),
        (IDEAS, Idea, "id"),
        (REPORTS_HISTORY, ReportHistory, "week_id"),
    ]

    async with AsyncSessionLocal() as db:
        store = DocumentStore(db)

        for collection, schema, key_field in collections:
            changed = 0
            documents = await store.list(collection)

            for key, data in documents:
                canonical = schema.model_validate({key_field: key, **data}).to_document()
                if canonical != data:
                    changed += 1
                    if not dry_run:
                        await store.put(collection, key, canonical)

            print(f"{collection}: {changed}/{len(documents)} documents {'would change' if dry_run else 'normalized'}")

        if not dry_run:
            await store.commit()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(normalize_documents(dry_run="--dry-run" in sys.argv))
