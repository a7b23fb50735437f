"""Idea log API endpoints."""

import logging
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import PortalSession, get_current_session
from backend.app.db.base import get_db
from backend.app.schemas.idea import Idea, IdeaCreate, IdeaListResponse, IdeaUpdate
from backend.app.services.enrichment import TITLE_PENDING, schedule_idea_title
from backend.app.services.entities import IdeaStore, MemberStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ideas", tags=["ideas"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", response_model=IdeaListResponse)
async def list_ideas(
    member_id: str | None = Query(None, description="Only ideas of this member"),
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> IdeaListResponse:
    """List ideas, newest first."""
    ideas = await IdeaStore(db).list_all(member_id=member_id)
    return IdeaListResponse(ideas=ideas, total=len(ideas))


@router.post("", response_model=Idea, status_code=status.HTTP_201_CREATED)
async def create_idea(
    idea_data: IdeaCreate,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Idea:
    """
    Create an idea.

    A blank title is stored as a placeholder and generated from the content
    in the background.
    """
    member = await MemberStore(db).get(idea_data.member_id)

    idea_name = idea_data.idea_name.strip()
    needs_title = not idea_name
    now = _now()

    idea = Idea(
        id=str(uuid4()),
        member_id=member.id,
        member_name=member.name,
        idea_name=TITLE_PENDING if needs_title else idea_name,
        content=idea_data.content,
        rejection_reason=idea_data.rejection_reason,
        created_at=now,
        updated_at=now,
    )
    await IdeaStore(db).save(idea)

    if needs_title:
        schedule_idea_title(idea.id)

    logger.info(f"[IDEAS] Created {idea.id} for {member.name} (title pending={needs_title})")
    return idea


@router.put("/{idea_id}", response_model=Idea)
async def update_idea(
    idea_id: str,
    idea_data: IdeaUpdate,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Idea:
    """
    Update an idea's title, content, rejection reason or owner.

    A blank or still-pending title is regenerated from the new content.
    """
    store = IdeaStore(db)
    idea = await store.get(idea_id)

    idea_name = idea_data.idea_name.strip()
    needs_title = idea_name in ("", TITLE_PENDING)

    update = {
        "idea_name": TITLE_PENDING if needs_title else idea_name,
        "content": idea_data.content,
        "rejection_reason": idea_data.rejection_reason,
        "updated_at": _now(),
    }
    if idea_data.member_id and idea_data.member_id != idea.member_id:
        member = await MemberStore(db).get(idea_data.member_id)
        update["member_id"] = member.id
        update["member_name"] = member.name

    saved = await store.save(idea.model_copy(update=update))

    if needs_title:
        schedule_idea_title(saved.id)

    return saved


@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(
    idea_id: str,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete an idea."""
    await IdeaStore(db).delete(idea_id)
