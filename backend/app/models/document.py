"""Document model backing the key/value document store."""

from datetime import datetime
from typing import Any
from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, utcnow


class Document(Base):
    """
    A JSON document addressed by collection and key.

    Attributes:
        collection: Collection name (members, reports, ideas, reports_history)
        key: Document key, unique within the collection
        data: Document body
        created_at: First write timestamp
        updated_at: Last write timestamp
    """

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=utcnow,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Document(collection={self.collection}, key={self.key})>"
