"""Login session endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import (
    PortalSession,
    create_session,
    delete_session,
    get_current_session,
    get_session_record,
)
from backend.app.db.base import get_db
from backend.app.schemas.auth import EditModeRequest, LoginRequest, LoginResponse, SessionResponse

router = APIRouter(tags=["auth"])


def _session_response(session) -> SessionResponse:
    return SessionResponse(
        member_id=session.member_id,
        member_name=session.member_name,
        edit_mode=session.edit_mode,
        expires_at=session.expires_at,
    )


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Log in with the shared access ID.

    Args:
        request: Access ID and optional member to act as

    Returns:
        LoginResponse with a bearer token
    """
    record = await create_session(db, request.access_id, request.member_id)
    return LoginResponse(token=record.token, **_session_response(record).model_dump())


@router.get("/me", response_model=SessionResponse)
async def me(session: PortalSession = Depends(get_current_session)):
    """Return the current login session."""
    return _session_response(session)


@router.put("/edit-mode", response_model=SessionResponse)
async def set_edit_mode(
    request: EditModeRequest,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Enable or disable bulk editing for the current session."""
    record = await get_session_record(db, session.token)
    record.edit_mode = request.enabled
    await db.commit()
    return _session_response(record)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """End the current login session."""
    await delete_session(db, session.token)
