"""Question answering over archived reports."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import PortalSession, get_current_session
from backend.app.db.base import get_db
from backend.app.schemas.rag import AnswerResponse, QuestionRequest, ScoredSnippet, SearchResponse
from backend.app.services.archive import ReportArchiveService
from backend.app.services.rag import RAGService

router = APIRouter(prefix="/rag", tags=["rag"])


@router.post("/search", response_model=SearchResponse)
async def search(
    request: QuestionRequest,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> SearchResponse:
    """Return the archived report snippets most similar to the question."""
    results = await RAGService(ReportArchiveService(db)).search(request.question, request.top_k)
    return SearchResponse(results=[ScoredSnippet(text=r.text, score=r.score) for r in results])


@router.post("/ask", response_model=AnswerResponse)
async def ask(
    request: QuestionRequest,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> AnswerResponse:
    """Answer a question from the most relevant archived reports."""
    answer = await RAGService(ReportArchiveService(db)).answer_question(request.question, request.top_k)
    return AnswerResponse(answer=answer)
