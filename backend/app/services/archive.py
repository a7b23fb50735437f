"""
Weekly report archival.

Snapshots the live reports under an ISO week id, optionally with one
embedding per report for RAG search. Embedding is best effort: a report
whose embedding fails is still archived, just without a vector.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    EmbeddingServiceError,
    HistoryNotFoundError,
    InvalidWeekIdError,
    NoReportsError,
)
from backend.app.schemas.report import HistorySummary, Report, ReportEmbedding, ReportFields, ReportHistory
from backend.app.services.document_store import DocumentStore, REPORTS_HISTORY
from backend.app.services.embedding import EmbeddingService, get_embedding_service
from backend.app.services.enrichment import TEASER_PENDING, fallback_teaser
from backend.app.services.entities import ReportStore

logger = logging.getLogger(__name__)

_WEEK_ID_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")


def generate_week_id(day: date) -> str:
    """
    Return the ISO-8601 week id of ``day``.

    Weeks start on Monday and belong to the year of their Thursday, so
    2024-12-30 is "2025-W01" and 2021-01-03 is "2020-W53".
    """
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def validate_week_id(week_id: str) -> str:
    """
    Check that a week id looks like ``YYYY-Www``.

    Raises:
        InvalidWeekIdError: On a malformed id or a week outside 01..53
    """
    match = _WEEK_ID_PATTERN.match(week_id)
    if match is None or not 1 <= int(match.group(2)) <= 53:
        raise InvalidWeekIdError(week_id)
    return week_id


def snapshot_report(report: Report) -> Report:
    """Copy of a live report fit for the archive, with any pending teaser resolved."""
    if report.teaser == TEASER_PENDING:
        return report.model_copy(update={"teaser": fallback_teaser(report)})
    return report.model_copy(deep=True)


def build_embedding_text(report: ReportFields) -> str:
    """Labeled text an archived report is embedded from."""
    return "\n".join([
        f"メンバー: {report.nickname}",
        f"今試していること: {report.current_trial}",
        f"経過報告: {report.progress}",
        f"結果報告・考察: {report.result}",
    ])


class ReportArchiveService:
    """
    Archive live reports and read archived weeks.

    Examples:
        >>> service = ReportArchiveService(db)
        >>> week_id = await service.archive_current_reports()
        >>> history = await service.get_history(week_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        embedding_service: EmbeddingService | None = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize archive service.

        Args:
            db: Database session
            embedding_service: Embedding gateway. If None, the shared one is used when needed.
            today: Clock used for the default week id
        """
        self.documents = DocumentStore(db)
        self.reports = ReportStore(db)
        self._embedding_service = embedding_service
        self.today = today

    @property
    def embedding_service(self) -> EmbeddingService:
        if self._embedding_service is None:
            self._embedding_service = get_embedding_service()
        return self._embedding_service

    async def _embed_reports(self, reports: list[Report]) -> list[ReportEmbedding]:
        """Embed reports one after another, skipping failures."""
        service = self.embedding_service
        embeddings = []

        for report in reports:
            text = build_embedding_text(report)
            try:
                vector = await service.embed(text)
            except (EmbeddingServiceError, ValueError) as e:
                logger.warning(f"[ARCHIVE] Embedding failed for report {report.id}: {e}")
                continue

            embeddings.append(ReportEmbedding(
                report_id=report.id,
                nickname=report.nickname,
                text=text,
                embedding=vector,
            ))

        return embeddings

    async def archive_current_reports(
        self,
        week_id: str | None = None,
        with_embeddings: bool = True,
    ) -> str:
        """
        Save a snapshot of the live reports.

        Args:
            week_id: Week to archive under; defaults to the current ISO week
            with_embeddings: Compute embeddings for RAG search

        Returns:
            The week id the snapshot was stored under

        Raises:
            NoReportsError: If there are no live reports
            InvalidWeekIdError: If week_id is malformed
            ConfigurationError: If embeddings are requested but no provider is configured
        """
        week_id = validate_week_id(week_id) if week_id else generate_week_id(self.today())

        reports = [snapshot_report(report) for report in await self.reports.list_all()]
        if not reports:
            raise NoReportsError()

        embeddings = None
        if with_embeddings:
            embeddings = await self._embed_reports(reports) or None
            if embeddings is None:
                logger.warning(f"[ARCHIVE] No embeddings succeeded for {week_id}, saving without them")

        history = ReportHistory(
            week_id=week_id,
            saved_at=datetime.now(timezone.utc).isoformat(),
            reports=reports,
            embeddings=embeddings,
        )

        await self.documents.put(REPORTS_HISTORY, week_id, history.to_document())
        await self.documents.commit()

        logger.info(
            f"[ARCHIVE] Saved {week_id}: {len(reports)} reports, "
            f"{len(embeddings) if embeddings else 0} embeddings"
        )
        return week_id

    async def list_history(self) -> list[HistorySummary]:
        """Return archived weeks, newest week first."""
        summaries = []
        for key, data in await self.documents.list(REPORTS_HISTORY):
            history = ReportHistory.model_validate({"week_id": key, **data})
            summaries.append(HistorySummary(
                week_id=history.week_id,
                saved_at=history.saved_at,
                report_count=len(history.reports),
                embedding_count=len(history.embeddings or []),
            ))

        return sorted(summaries, key=lambda s: s.week_id, reverse=True)

    async def get_history(self, week_id: str) -> ReportHistory:
        """
        Return one archived week.

        Raises:
            HistoryNotFoundError: If the week was never archived
        """
        data = await self.documents.get(REPORTS_HISTORY, week_id)
        if data is None:
            raise HistoryNotFoundError(week_id)
        return ReportHistory.model_validate({"week_id": week_id, **data})

    async def get_all_embeddings(self) -> list[ReportEmbedding]:
        """
        Return every archived embedding.

        Texts are prefixed with their week id. Weeks are ordered ascending,
        embeddings within a week keep their stored order.
        """
        collected = []
        for key, data in sorted(await self.documents.list(REPORTS_HISTORY), key=lambda item: item[0]):
            history = ReportHistory.model_validate({"week_id": key, **data})
            for embedding in history.embeddings or []:
                collected.append(embedding.model_copy(update={
                    "text": f"[{history.week_id}] {embedding.text}",
                }))

        return collected
