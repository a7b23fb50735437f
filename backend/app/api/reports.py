"""Live weekly report API endpoints."""

import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.auth import PortalSession, get_current_session, require_edit_mode
from backend.app.db.base import get_db
from backend.app.schemas.report import (
    Report,
    ReportCreate,
    ReportListResponse,
    ReportSummary,
    SummarizeRequest,
    SyncResponse,
)
from backend.app.services.enrichment import assign_teaser_placeholders, schedule_report_teasers
from backend.app.services.entities import ReportStore
from backend.app.services.llm import get_llm_service
from backend.app.websocket.manager import manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


async def _store_with_teasers(store: ReportStore, reports: list[Report]) -> list[Report]:
    """Save reports with teaser placeholders and schedule their generation."""
    previous = {}
    for report in reports:
        existing = await store.find(report.id)
        if existing is not None:
            previous[report.id] = existing

    prepared, pending_ids = assign_teaser_placeholders(reports, previous)
    for report in prepared:
        await store.save(report, commit=False)
    await store.documents.commit()

    schedule_report_teasers(pending_ids)
    return prepared


@router.get("", response_model=ReportListResponse)
async def list_reports(
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> ReportListResponse:
    """List the live reports of the current cycle."""
    reports = await ReportStore(db).list_all()
    return ReportListResponse(reports=reports, total=len(reports))


@router.post("", response_model=Report, status_code=status.HTTP_201_CREATED)
async def add_report(
    report_data: ReportCreate,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Report:
    """Add a report; a teaser is generated in the background when it has content."""
    report = Report(id=str(uuid4()), **report_data.model_dump())
    [report] = await _store_with_teasers(ReportStore(db), [report])
    await manager.send_reports_changed()
    return report


@router.post("/summarize", response_model=ReportSummary)
async def summarize_report(
    request: SummarizeRequest,
    session: PortalSession = Depends(get_current_session),
) -> ReportSummary:
    """Split a spoken report transcript into the three report fields."""
    return await get_llm_service().summarize_report(request.transcript)


@router.put("/{report_id}", response_model=Report)
async def save_report(
    report_id: str,
    report_data: ReportCreate,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> Report:
    """Save one report; a changed narrative gets a new teaser in the background."""
    report = Report(id=report_id, **report_data.model_dump())
    [report] = await _store_with_teasers(ReportStore(db), [report])
    await manager.send_reports_changed()
    return report


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: str,
    session: PortalSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a live report."""
    await ReportStore(db).delete(report_id)
    await manager.send_reports_changed()


@router.put("", response_model=SyncResponse)
async def sync_reports(
    reports: list[Report],
    session: PortalSession = Depends(require_edit_mode),
    db: AsyncSession = Depends(get_db),
) -> SyncResponse:
    """
    Replace the whole live report list.

    Reports absent from the payload are deleted; new or changed reports get
    teaser placeholders that are filled in the background.
    """
    store = ReportStore(db)
    previous = {report.id: report for report in await store.list_all()}
    prepared, pending_ids = assign_teaser_placeholders(reports, previous)

    result = await store.sync(prepared)
    schedule_report_teasers(pending_ids)
    await manager.send_reports_changed()

    logger.info(f"[REPORTS] Sync scheduled {len(pending_ids)} teasers")
    return SyncResponse(saved=result.saved, deleted=result.deleted)
