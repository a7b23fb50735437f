"""
Asynchronous AI enrichment of report teasers and idea titles.

Writes happen in two phases. The request path stores a placeholder and
commits, so the caller never waits on the LLM. A detached background task
then generates the real value, falls back to a deterministic one when the
LLM is unavailable, and replaces the placeholder unless a newer edit got
there first.
"""

import asyncio
import logging
from typing import Coroutine, Sequence

from backend.app.core.config import settings
from backend.app.schemas.idea import Idea
from backend.app.schemas.report import NARRATIVE_FIELDS, Report, ReportFields
from backend.app.services.entities import IdeaStore, ReportStore
from backend.app.services.llm import DEFAULT_TEASER, get_llm_service
from backend.app.websocket.manager import manager

logger = logging.getLogger(__name__)

TEASER_PENDING = "魅力的な見出しを作成中..."
TITLE_PENDING = "タイトル生成中..."


def fallback_teaser(report: ReportFields) -> str:
    """First non-empty narrative field, truncated."""
    for name in NARRATIVE_FIELDS:
        text = getattr(report, name).strip()
        if text:
            return f"{text[:settings.fallback_text_length]}..."
    return DEFAULT_TEASER


def fallback_title(content: str) -> str:
    """Leading characters of the content, with "..." only when truncated."""
    content = content.strip()
    limit = settings.fallback_text_length
    if len(content) > limit:
        return f"{content[:limit]}..."
    return content


def assign_teaser_placeholders(
    incoming: Sequence[Report],
    previous: dict[str, Report],
) -> tuple[list[Report], list[str]]:
    """
    Decide which reports need a new teaser.

    A report gets the placeholder when it is new or its narrative changed,
    and also when a non-empty narrative still has no teaser. Reports with an
    empty narrative get no teaser at all. Unchanged reports keep their
    stored teaser.

    Returns:
        The reports to store, and the ids to enrich in the background
    """
    prepared = []
    pending_ids = []

    for report in incoming:
        old = previous.get(report.id)

        if not report.has_narrative():
            teaser = None
        elif old is None or report.narrative_differs(old) or old.teaser in (None, TEASER_PENDING):
            teaser = TEASER_PENDING
            pending_ids.append(report.id)
        else:
            teaser = old.teaser

        prepared.append(report.model_copy(update={"teaser": teaser}))

    return prepared, pending_ids


class BackgroundEnricher:
    """
    Runs enrichment coroutines as detached tasks.

    Strong references are held until each task settles so the event loop
    never drops one mid-flight.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of tasks that have not settled yet."""
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: str | None = None) -> asyncio.Task:
        """Schedule a coroutine without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"[ENRICH] Task {task.get_name()} was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[ENRICH] Task {task.get_name()} failed: {exc!r}")

    async def drain(self) -> None:
        """Wait until every in-flight task (including ones they spawn) has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# Global enricher instance
enricher = BackgroundEnricher()


def _session_factory():
    # Looked up at call time so tests can swap the session factory
    from backend.app.db import base

    return base.AsyncSessionLocal()


async def enrich_report_teaser(report_id: str) -> str | None:
    """
    Generate and store the teaser of one report.

    Returns:
        The stored teaser, or None if a newer edit made this run obsolete
    """
    async with _session_factory() as db:
        report = await ReportStore(db).find(report_id)

    if report is None or report.teaser != TEASER_PENDING:
        logger.info(f"[ENRICH] Report {report_id} no longer awaits a teaser")
        return None

    try:
        teaser = await get_llm_service().generate_report_teaser(report)
    except Exception as e:
        # Any failure still resolves the placeholder
        logger.warning(f"[ENRICH] Teaser generation failed for {report_id}, using fallback: {e}")
        teaser = fallback_teaser(report)

    async with _session_factory() as db:
        store = ReportStore(db)
        current = await store.find(report_id)
        # A newer edit re-scheduled its own run; leave the placeholder to it
        if current is None or current.teaser != TEASER_PENDING or current.narrative_differs(report):
            logger.info(f"[ENRICH] Report {report_id} changed during generation, discarding teaser")
            return None
        await store.save(current.model_copy(update={"teaser": teaser}))

    logger.info(f"[ENRICH] Report {report_id} teaser: {teaser}")
    await manager.send_report_updated(report_id, teaser)
    return teaser


async def enrich_idea_title(idea_id: str) -> str | None:
    """
    Generate and store the title of one idea.

    Returns:
        The stored title, or None if a newer edit made this run obsolete
    """
    async with _session_factory() as db:
        idea = await IdeaStore(db).find(idea_id)

    if idea is None or idea.idea_name != TITLE_PENDING:
        logger.info(f"[ENRICH] Idea {idea_id} no longer awaits a title")
        return None

    try:
        title = await get_llm_service().generate_idea_title(idea.content)
    except Exception as e:
        logger.warning(f"[ENRICH] Title generation failed for {idea_id}, using fallback: {e}")
        title = fallback_title(idea.content)

    async with _session_factory() as db:
        store = IdeaStore(db)
        current: Idea | None = await store.find(idea_id)
        if current is None or current.idea_name != TITLE_PENDING or current.content != idea.content:
            logger.info(f"[ENRICH] Idea {idea_id} changed during generation, discarding title")
            return None
        await store.save(current.model_copy(update={"idea_name": title}))

    logger.info(f"[ENRICH] Idea {idea_id} title: {title}")
    await manager.send_idea_updated(idea_id, title)
    return title


def schedule_report_teasers(report_ids: Sequence[str]) -> None:
    """Spawn one teaser task per report."""
    for report_id in report_ids:
        enricher.spawn(enrich_report_teaser(report_id), name=f"teaser:{report_id}")


def schedule_idea_title(idea_id: str) -> None:
    """Spawn the title task of an idea."""
    enricher.spawn(enrich_idea_title(idea_id), name=f"title:{idea_id}")
