"""Login session model."""

from datetime import datetime
from sqlalchemy import String, DateTime, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, utcnow


class AuthSession(Base):
    """
    A bearer-token login session.

    Attributes:
        token: Opaque bearer token
        member_id: Member the user logged in as (nullable for bootstrap logins)
        member_name: Member display name at login time
        edit_mode: Whether bulk edits are enabled for this session
        created_at: Login timestamp
        expires_at: Expiration timestamp
    """

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    member_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    member_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    edit_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<AuthSession(member_id={self.member_id}, edit_mode={self.edit_mode})>"
