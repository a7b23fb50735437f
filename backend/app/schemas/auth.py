"""Login session schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request."""

    access_id: str = Field(..., min_length=1, description="Shared group access ID")
    member_id: str | None = Field(None, description="Member to act as")


class SessionResponse(BaseModel):
    """Current login session."""

    member_id: str | None = Field(None, description="Member the session acts as")
    member_name: str | None = Field(None, description="Member display name")
    edit_mode: bool = Field(..., description="Whether bulk edits are enabled")
    expires_at: datetime = Field(..., description="Session expiration")


class LoginResponse(SessionResponse):
    """Login response carrying the bearer token."""

    token: str = Field(..., description="Bearer token for the Authorization header")


class EditModeRequest(BaseModel):
    """Toggle edit mode."""

    enabled: bool
