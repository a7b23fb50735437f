"""
Live entity stores for members, reports and ideas.

Each store reads documents through the schema's legacy normalization and
writes the canonical shape. ``sync`` is the declarative full-replace save:
the caller passes the complete desired collection, documents absent from it
are deleted and the rest upserted. There is no conflict detection, so two
editors syncing at once resolve as last write wins.
"""

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Sequence, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    IdeaNotFoundError,
    MemberNotFoundError,
    ORangeException,
    ReportNotFoundError,
    ValidationFailedError,
)
from backend.app.schemas.base import DocumentModel
from backend.app.schemas.idea import Idea
from backend.app.schemas.member import Member
from backend.app.schemas.report import Report
from backend.app.services.document_store import DocumentStore, IDEAS, MEMBERS, REPORTS

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=DocumentModel)


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a full-collection sync."""

    saved: int
    deleted: int


class EntityStore(Generic[EntityT]):
    """CRUD access to one collection of ``id``-keyed entities."""

    collection: ClassVar[str]
    schema: ClassVar[type[DocumentModel]]
    not_found_error: ClassVar[type[ORangeException]]

    def __init__(self, db: AsyncSession):
        self.documents = DocumentStore(db)

    def parse(self, key: str, data: dict[str, Any]) -> EntityT:
        """Normalize a stored document into the canonical schema."""
        return self.schema.model_validate({**data, "id": data.get("id") or key})

    async def list_all(self) -> list[EntityT]:
        """Return every entity in the collection."""
        return [self.parse(key, data) for key, data in await self.documents.list(self.collection)]

    async def find(self, entity_id: str) -> EntityT | None:
        """Return an entity or None."""
        data = await self.documents.get(self.collection, entity_id)
        if data is None:
            return None
        return self.parse(entity_id, data)

    async def get(self, entity_id: str) -> EntityT:
        """
        Return an entity.

        Raises:
            The store's not-found error if the entity does not exist
        """
        entity = await self.find(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    async def save(self, entity: EntityT, commit: bool = True) -> EntityT:
        """Merge-write an entity."""
        await self.documents.put(self.collection, entity.id, entity.to_document(), merge_existing=True)
        if commit:
            await self.documents.commit()
        return entity

    async def delete(self, entity_id: str) -> None:
        """
        Delete an entity.

        Raises:
            The store's not-found error if the entity does not exist
        """
        if not await self.documents.delete(self.collection, entity_id):
            raise self.not_found_error(entity_id)
        await self.documents.commit()
        logger.info(f"[{self.collection.upper()}] Deleted {entity_id}")

    async def sync(self, entities: Sequence[EntityT]) -> SyncResult:
        """
        Replace the whole collection with ``entities``.

        Args:
            entities: The complete desired collection

        Returns:
            SyncResult with upsert and delete counts

        Raises:
            ValidationFailedError: If the payload repeats an id
        """
        next_ids = [entity.id for entity in entities]
        if len(next_ids) != len(set(next_ids)):
            raise ValidationFailedError(f"Duplicate ids in {self.collection} payload")

        existing_ids = await self.documents.keys(self.collection)
        stale_ids = existing_ids - set(next_ids)

        for stale_id in sorted(stale_ids):
            await self.documents.delete(self.collection, stale_id)

        for entity in entities:
            await self.documents.put(self.collection, entity.id, entity.to_document(), merge_existing=True)

        await self.documents.commit()
        logger.info(f"[{self.collection.upper()}] Synced {len(entities)} documents (deleted {len(stale_ids)})")
        return SyncResult(saved=len(entities), deleted=len(stale_ids))


class MemberStore(EntityStore[Member]):
    collection = MEMBERS
    schema = Member
    not_found_error = MemberNotFoundError


class ReportStore(EntityStore[Report]):
    collection = REPORTS
    schema = Report
    not_found_error = ReportNotFoundError

    async def clear_narratives(self) -> list[Report]:
        """Reset every live report for a new reporting cycle."""
        cleared = []
        for report in await self.list_all():
            report = report.model_copy(update={
                "current_trial": "",
                "progress": "",
                "result": "",
                "teaser": None,
            })
            await self.save(report, commit=False)
            cleared.append(report)

        await self.documents.commit()
        logger.info(f"[REPORTS] Cleared {len(cleared)} live reports")
        return cleared


class IdeaStore(EntityStore[Idea]):
    collection = IDEAS
    schema = Idea
    not_found_error = IdeaNotFoundError

    async def list_all(self, member_id: str | None = None) -> list[Idea]:
        """Return ideas newest first, optionally for one member."""
        ideas = await super().list_all()
        if member_id is not None:
            ideas = [idea for idea in ideas if idea.member_id == member_id]
        return sorted(ideas, key=lambda idea: idea.created_at, reverse=True)
