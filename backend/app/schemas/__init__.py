"""Pydantic schemas for API request/response validation."""

from backend.app.schemas.member import (
    Member,
    MemberCreate,
    MemberListResponse,
    ImageUploadResponse,
)
from backend.app.schemas.report import (
    Report,
    ReportCreate,
    ReportListResponse,
    ReportSummary,
    SummarizeRequest,
    ReportEmbedding,
    ReportHistory,
    HistorySummary,
    HistoryListResponse,
    ArchiveRequest,
    ArchiveResponse,
    SyncResponse,
)
from backend.app.schemas.idea import Idea, IdeaCreate, IdeaUpdate, IdeaListResponse
from backend.app.schemas.auth import LoginRequest, LoginResponse, SessionResponse, EditModeRequest
from backend.app.schemas.rag import QuestionRequest, ScoredSnippet, SearchResponse, AnswerResponse

__all__ = [
    "Member",
    "MemberCreate",
    "MemberListResponse",
    "ImageUploadResponse",
    "Report",
    "ReportCreate",
    "ReportListResponse",
    "ReportSummary",
    "SummarizeRequest",
    "ReportEmbedding",
    "ReportHistory",
    "HistorySummary",
    "HistoryListResponse",
    "ArchiveRequest",
    "ArchiveResponse",
    "SyncResponse",
    "Idea",
    "IdeaCreate",
    "IdeaUpdate",
    "IdeaListResponse",
    "LoginRequest",
    "LoginResponse",
    "SessionResponse",
    "EditModeRequest",
    "QuestionRequest",
    "ScoredSnippet",
    "SearchResponse",
    "AnswerResponse",
]
