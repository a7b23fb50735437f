"""Bearer-token login sessions and request dependencies."""

import logging
import secrets
from datetime import timedelta

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import AuthenticationError, EditModeRequiredError
from backend.app.db.base import get_db, utcnow
from backend.app.models.auth_session import AuthSession
from backend.app.services.entities import MemberStore

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


class PortalSession:
    """Context object for the logged-in user of a request."""

    def __init__(self, record: AuthSession):
        self.token = record.token
        self.member_id = record.member_id
        self.member_name = record.member_name
        self.edit_mode = record.edit_mode
        self.expires_at = record.expires_at


def is_valid_access_id(access_id: str) -> bool:
    """Whether an access id is accepted (case-insensitive)."""
    return access_id.strip().lower() in settings.access_ids_list


async def create_session(db: AsyncSession, access_id: str, member_id: str | None = None) -> AuthSession:
    """
    Log in with a shared access id.

    Raises:
        AuthenticationError: If the access id is not accepted
        MemberNotFoundError: If member_id is given but does not exist
    """
    if not is_valid_access_id(access_id):
        logger.info("[AUTH] Rejected login with unknown access id")
        raise AuthenticationError("Invalid access ID")

    member_name = None
    if member_id:
        member = await MemberStore(db).get(member_id)
        member_name = member.name

    now = utcnow()
    record = AuthSession(
        token=secrets.token_urlsafe(32),
        member_id=member_id,
        member_name=member_name,
        edit_mode=False,
        created_at=now,
        expires_at=now + timedelta(hours=settings.session_expiration_hours),
    )
    db.add(record)
    await db.commit()

    logger.info(f"[AUTH] Login as member={member_id}")
    return record


async def get_session_record(db: AsyncSession, token: str) -> AuthSession:
    """
    Load a live session by token.

    Raises:
        AuthenticationError: If the token is unknown or expired
    """
    result = await db.execute(select(AuthSession).where(AuthSession.token == token))
    record = result.scalar_one_or_none()

    if record is None:
        raise AuthenticationError("Invalid session token")
    if record.expires_at <= utcnow():
        raise AuthenticationError("Session expired")

    return record


async def delete_session(db: AsyncSession, token: str) -> None:
    """Log out; unknown tokens are ignored."""
    await db.execute(delete(AuthSession).where(AuthSession.token == token))
    await db.commit()


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> PortalSession:
    """
    Require a valid login session.

    Raises:
        AuthenticationError: If the bearer token is missing, unknown or expired
    """
    if credentials is None:
        raise AuthenticationError()

    record = await get_session_record(db, credentials.credentials)
    return PortalSession(record)


async def require_edit_mode(
    session: PortalSession = Depends(get_current_session),
) -> PortalSession:
    """
    Require a login session with edit mode enabled.

    Raises:
        EditModeRequiredError: If edit mode is off
    """
    if not session.edit_mode:
        raise EditModeRequiredError()
    return session
