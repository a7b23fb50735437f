"""Report, history and archive schemas."""

from pydantic import AliasChoices, BaseModel, Field, field_validator

from backend.app.schemas.base import DocumentModel, coerce_text

NARRATIVE_FIELDS = ("current_trial", "progress", "result")


class ReportFields(DocumentModel):
    """Editable report fields."""

    nickname: str = Field("", description="Display name of the reporting member")
    current_trial: str = Field(
        "",
        validation_alias=AliasChoices("current_trial", "currentTrial"),
        description="今試していること",
    )
    progress: str = Field("", description="経過報告")
    result: str = Field("", description="結果報告・考察")

    @field_validator("nickname", *NARRATIVE_FIELDS, mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)

    def has_narrative(self) -> bool:
        """Whether any narrative field has content."""
        return any(getattr(self, name).strip() for name in NARRATIVE_FIELDS)

    def narrative_differs(self, other: "ReportFields") -> bool:
        """Whether any narrative field differs from ``other``."""
        return any(getattr(self, name) != getattr(other, name) for name in NARRATIVE_FIELDS)


class Report(ReportFields):
    """A live weekly report."""

    id: str = Field(..., min_length=1, description="Report ID")
    teaser: str | None = Field(None, description="AI-generated one-line teaser")

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return coerce_text(v)


class ReportCreate(ReportFields):
    """Schema for adding or saving a report."""


class ReportListResponse(BaseModel):
    """Schema for live report list."""

    reports: list[Report] = Field(..., description="Live reports")
    total: int = Field(..., description="Total number of reports")


class ReportSummary(BaseModel):
    """Three-field summary produced from a voice transcript."""

    current_trial: str = Field(..., description="今試していること")
    progress: str = Field(..., description="経過報告")
    result: str = Field(..., description="結果報告・考察")


class SummarizeRequest(BaseModel):
    """Schema for transcript summarization."""

    transcript: str = Field(..., min_length=1, max_length=20000, description="Voice transcript")


class ReportEmbedding(DocumentModel):
    """Embedding of one archived report."""

    report_id: str = Field(..., validation_alias=AliasChoices("report_id", "reportId"))
    nickname: str = Field("", description="Display name of the reporting member")
    text: str = Field(..., description="Labeled text the vector was computed from")
    embedding: list[float] = Field(..., description="Embedding vector")

    @field_validator("nickname", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)


class ReportHistory(DocumentModel):
    """Immutable weekly snapshot of the live reports."""

    week_id: str = Field(..., validation_alias=AliasChoices("week_id", "weekId"), description="ISO week, e.g. 2026-W02")
    saved_at: str = Field(..., validation_alias=AliasChoices("saved_at", "savedAt"), description="ISO-8601 save timestamp")
    reports: list[Report] = Field(default_factory=list, description="Reports at save time")
    embeddings: list[ReportEmbedding] | None = Field(None, description="Embeddings for RAG search")


class HistorySummary(BaseModel):
    """Listing entry for one archived week."""

    week_id: str
    saved_at: str
    report_count: int
    embedding_count: int


class HistoryListResponse(BaseModel):
    """Schema for history list."""

    history: list[HistorySummary]
    total: int


class ArchiveRequest(BaseModel):
    """Schema for archiving the live reports."""

    week_id: str | None = Field(None, description="Week to archive under; defaults to the current ISO week")
    with_embeddings: bool = Field(True, description="Compute embeddings for RAG search")
    clear_live_reports: bool = Field(True, description="Reset live report narratives after archiving")


class ArchiveResponse(BaseModel):
    """Result of an archive operation."""

    week_id: str
    report_count: int
    embedding_count: int
    cleared: bool


class SyncResponse(BaseModel):
    """Result of a full-collection sync."""

    saved: int = Field(..., description="Number of upserted documents")
    deleted: int = Field(..., description="Number of documents deleted because they were absent")
