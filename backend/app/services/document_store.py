"""
Document store over the ``documents`` table.

Each document is a JSON object addressed by (collection, key). Operations
flush but never commit; callers commit once their unit of work is done.
"""

import copy
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.base import utcnow
from backend.app.models.document import Document

logger = logging.getLogger(__name__)

MEMBERS = "members"
REPORTS = "reports"
IDEAS = "ideas"
REPORTS_HISTORY = "reports_history"


class DocumentStore:
    """Key/value document access for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self, collection: str, key: str) -> Document | None:
        result = await self.db.execute(
            select(Document).where(
                Document.collection == collection,
                Document.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return a copy of the document body, or None if absent."""
        document = await self._fetch(collection, key)
        if document is None:
            return None
        return copy.deepcopy(document.data)

    async def list(self, collection: str) -> list[tuple[str, dict[str, Any]]]:
        """Return (key, body) pairs of every document in a collection, oldest first."""
        result = await self.db.execute(
            select(Document)
            .where(Document.collection == collection)
            .order_by(Document.created_at, Document.key)
        )
        return [(doc.key, copy.deepcopy(doc.data)) for doc in result.scalars().all()]

    async def keys(self, collection: str) -> set[str]:
        """Return every key in a collection."""
        result = await self.db.execute(
            select(Document.key).where(Document.collection == collection)
        )
        return set(result.scalars().all())

    async def put(
        self,
        collection: str,
        key: str,
        doc: dict[str, Any],
        merge_existing: bool = False,
    ) -> None:
        """
        Write a document.

        Args:
            collection: Collection name
            key: Document key
            doc: Document body (copied, never referenced)
            merge_existing: Shallow-merge over the stored body instead of replacing it
        """
        now = utcnow()
        body = copy.deepcopy(doc)
        existing = await self._fetch(collection, key)

        if existing is None:
            self.db.add(Document(
                collection=collection,
                key=key,
                data=body,
                created_at=now,
                updated_at=now,
            ))
        else:
            # Assign a new dict so the JSON column change is detected
            existing.data = {**existing.data, **body} if merge_existing else body
            existing.updated_at = now

        await self.db.flush()
        logger.debug(f"[STORE] put {collection}/{key} (merge={merge_existing})")

    async def delete(self, collection: str, key: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        existing = await self._fetch(collection, key)
        if existing is None:
            return False

        await self.db.delete(existing)
        await self.db.flush()
        logger.debug(f"[STORE] delete {collection}/{key}")
        return True

    async def commit(self) -> None:
        """Commit the pending writes."""
        await self.db.commit()
