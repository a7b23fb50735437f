"""Member-related schemas."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from backend.app.schemas.base import DocumentModel, coerce_text, clean_image_url

TEXT_FIELDS = ("name", "nickname", "tagline", "birth_date", "hometown", "hobbies", "thoughts", "career")

ImageSlot = Literal["no1", "no2"]


class MemberFields(DocumentModel):
    """Editable member profile fields."""

    name: str = Field("", description="Display name")
    nickname: str = Field("", description="Nickname")
    tagline: str = Field("", description="One-line tagline")
    image_no1: str | None = Field(
        None,
        validation_alias=AliasChoices("image_no1", "imageNo1"),
        description="Primary image URL",
    )
    image_no2: str | None = Field(
        None,
        validation_alias=AliasChoices("image_no2", "imageNo2"),
        description="Secondary image URL",
    )
    birth_date: str = Field(
        "",
        validation_alias=AliasChoices("birth_date", "birthDate", "birthdate"),
        description="Birth date (free text)",
    )
    hometown: str = Field("", description="Hometown")
    hobbies: str = Field("", description="Hobbies")
    thoughts: str = Field("", description="Free-form thoughts")
    career: str = Field("", description="Career summary")

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)

    @field_validator("image_no1", "image_no2", mode="before")
    @classmethod
    def normalize_image(cls, v):
        return clean_image_url(v)


class Member(MemberFields):
    """A stored member profile."""

    id: str = Field(..., min_length=1, description="Member ID")

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return coerce_text(v)


class MemberCreate(MemberFields):
    """Schema for adding a member (ID is generated by the server)."""

    name: str = Field(..., min_length=1, description="Display name")


class MemberListResponse(BaseModel):
    """Schema for member list."""

    members: list[Member] = Field(..., description="List of members")
    total: int = Field(..., description="Total number of members")


class ImageUploadResponse(BaseModel):
    """Response for a member image upload."""

    member: Member = Field(..., description="Updated member")
    slot: ImageSlot = Field(..., description="Image slot that was replaced")
    url: str = Field(..., description="Public URL of the uploaded image")
