"""Shared helpers for document-backed schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict


def coerce_text(value: Any) -> str:
    """Convert legacy None/non-string field values to a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def clean_image_url(value: Any) -> str | None:
    """Drop empty and transient browser-local (blob:) image references."""
    if not isinstance(value, str) or not value or value.startswith("blob:"):
        return None
    return value


class DocumentModel(BaseModel):
    """
    Base for schemas persisted in the document store.

    Stored documents written by older clients use camelCase keys. Each field
    lists its legacy names through ``validation_alias`` so that reading a
    document is the single normalization point; dumping always produces the
    canonical snake_case shape.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> dict[str, Any]:
        """Serialize to the canonical stored shape."""
        return self.model_dump(mode="json")
