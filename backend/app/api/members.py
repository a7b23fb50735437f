"""Member profile API endpoints."""

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import PortalSession, get_current_session, require_edit_mode
from backend.app.core.exceptions import StorageError
from backend.app.db.base import get_db
from backend.app.schemas.member import (
    ImageSlot,
    ImageUploadResponse,
    Member,
    MemberCreate,
    MemberFields,
    MemberListResponse,
)
from backend.app.schemas.report import SyncResponse
from backend.app.services.entities import MemberStore
from backend.app.services.storage import get_blob_storage, member_image_path, validate_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=MemberListResponse)
async def list_members(
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> MemberListResponse:
    """List all member profiles."""
    members = await MemberStore(db).list_all()
    return MemberListResponse(members=members, total=len(members))


@router.get("/{member_id}", response_model=Member)
async def get_member(
    member_id: str,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Member:
    """Get one member profile."""
    return await MemberStore(db).get(member_id)


@router.post("", response_model=Member, status_code=status.HTTP_201_CREATED)
async def add_member(
    member_data: MemberCreate,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Member:
    """Add a member; the ID is generated by the server."""
    member = Member(id=str(uuid4()), **member_data.model_dump())
    await MemberStore(db).save(member)
    logger.info(f"[MEMBERS] Added {member.id} ({member.name})")
    return member


@router.put("/{member_id}", response_model=Member)
async def save_member(
    member_id: str,
    member_data: MemberFields,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Member:
    """Save one member profile (creates it if missing)."""
    member = Member(id=member_id, **member_data.model_dump())
    return await MemberStore(db).save(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    member_id: str,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a member profile."""
    await MemberStore(db).delete(member_id)


@router.put("", response_model=SyncResponse)
async def sync_members(
    members: list[Member],
    session: PortalSession = Depends(require_edit_mode),
    db: AsyncSession = Depends(get_db),
) -> SyncResponse:
    """Replace the whole member list; members absent from the payload are deleted."""
    result = await MemberStore(db).sync(members)
    return SyncResponse(saved=result.saved, deleted=result.deleted)


@router.post("/{member_id}/images/{slot}", response_model=ImageUploadResponse)
async def upload_member_image(
    member_id: str,
    slot: ImageSlot,
    file: UploadFile = File(...),
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> ImageUploadResponse:
    """
    Upload a profile image into slot ``no1`` or ``no2``.

    The previous image of the slot is removed after the profile is updated.
    """
    data = await file.read()
    validate_image(file.content_type, len(data))

    store = MemberStore(db)
    member = await store.get(member_id)

    storage = get_blob_storage()
    url = storage.put(member_image_path(member_id, slot, file.content_type), data)

    field = f"image_{slot}"
    previous_url = getattr(member, field)
    member = await store.save(member.model_copy(update={field: url}))

    if previous_url and previous_url != url:
        try:
            storage.delete(previous_url)
        except StorageError as e:
            logger.warning(f"[MEMBERS] Could not delete previous image {previous_url}: {e.message}")

    return ImageUploadResponse(member=member, slot=slot, url=url)
