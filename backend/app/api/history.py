"""Weekly report archive API endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import PortalSession, get_current_session
from backend.app.db.base import get_db
from backend.app.schemas.report import ArchiveRequest, ArchiveResponse, HistoryListResponse, ReportHistory
from backend.app.services.archive import ReportArchiveService
from backend.app.services.entities import ReportStore
from backend.app.websocket.manager import manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["history"])


@router.post("", response_model=ArchiveResponse, status_code=status.HTTP_201_CREATED)
async def archive_reports(
    request: ArchiveRequest,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> ArchiveResponse:
    """
    Archive the live reports under a week id.

    Embeddings are computed best effort. The live reports are reset for the
    next cycle unless ``clear_live_reports`` is false.
    """
    service = ReportArchiveService(db)
    week_id = await service.archive_current_reports(request.week_id, request.with_embeddings)
    history = await service.get_history(week_id)

    if request.clear_live_reports:
        await ReportStore(db).clear_narratives()
        await manager.send_reports_changed()

    return ArchiveResponse(
        week_id=week_id,
        report_count=len(history.reports),
        embedding_count=len(history.embeddings or []),
        cleared=request.clear_live_reports,
    )


@router.get("", response_model=HistoryListResponse)
async def list_history(
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> HistoryListResponse:
    """List archived weeks, newest first."""
    history = await ReportArchiveService(db).list_history()
    return HistoryListResponse(history=history, total=len(history))


@router.get("/{week_id}", response_model=ReportHistory)
async def get_history(
    week_id: str,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> ReportHistory:
    """Get the snapshot of one archived week."""
    return await ReportArchiveService(db).get_history(week_id)
