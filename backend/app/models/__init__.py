"""Database models."""

from backend.app.models.document import Document
from backend.app.models.auth_session import AuthSession

__all__ = ["Document", "AuthSession"]
