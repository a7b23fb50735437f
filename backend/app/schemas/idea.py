"""Idea-related schemas."""

from pydantic import AliasChoices, BaseModel, Field, field_validator

from backend.app.schemas.base import DocumentModel, coerce_text


class Idea(DocumentModel):
    """A stored idea note."""

    id: str = Field(..., min_length=1, description="Idea ID")
    member_id: str = Field(
        "",
        validation_alias=AliasChoices("member_id", "memberId"),
        description="Owning member ID",
    )
    member_name: str = Field(
        "",
        validation_alias=AliasChoices("member_name", "memberName"),
        description="Owning member name",
    )
    idea_name: str = Field(
        "",
        validation_alias=AliasChoices("idea_name", "ideaName"),
        description="Short title",
    )
    content: str = Field("", description="Idea content")
    rejection_reason: str | None = Field(
        None,
        validation_alias=AliasChoices("rejection_reason", "rejectionReason"),
        description="Why the idea was rejected",
    )
    created_at: str = Field(
        "",
        validation_alias=AliasChoices("created_at", "createdAt"),
        description="Creation timestamp (ISO-8601)",
    )
    updated_at: str = Field(
        "",
        validation_alias=AliasChoices("updated_at", "updatedAt"),
        description="Update timestamp (ISO-8601)",
    )

    @field_validator("id", "member_id", "member_name", "idea_name", "content", "created_at", "updated_at", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def normalize_rejection_reason(cls, v):
        text = coerce_text(v).strip()
        return text or None


class IdeaCreate(BaseModel):
    """Schema for creating a new idea."""

    member_id: str = Field(..., min_length=1, description="Owning member ID")
    idea_name: str = Field(
        "",
        max_length=200,
        description="Title; leave blank to have one generated from the content"
    )
    content: str = Field(..., min_length=1, max_length=5000, description="Idea content")
    rejection_reason: str | None = Field(None, max_length=2000, description="Why the idea was rejected")


class IdeaUpdate(BaseModel):
    """Schema for updating an idea."""

    member_id: str | None = Field(None, description="New owning member ID")
    idea_name: str = Field(..., min_length=1, max_length=200, description="Title")
    content: str = Field(..., min_length=1, max_length=5000, description="Idea content")
    rejection_reason: str | None = Field(None, max_length=2000, description="Why the idea was rejected")


class IdeaListResponse(BaseModel):
    """Schema for idea list."""

    ideas: list[Idea] = Field(..., description="List of ideas")
    total: int = Field(..., description="Total number of ideas")
