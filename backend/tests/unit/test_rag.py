"""Unit tests for the RAG query service."""

from unittest.mock import AsyncMock, Mock

import pytest

from backend.app.core.exceptions import EmptyQuestionError, NoEmbeddingDataError
from backend.app.schemas.report import Report
from backend.app.services.archive import ReportArchiveService
from backend.app.services.entities import ReportStore
from backend.app.services.rag import RAGService


@pytest.fixture
def mock_llm():
    llm = Mock()
    llm.answer_with_context = AsyncMock(return_value="たろうさんがNext.jsを試しました。")
    return llm


@pytest.fixture
async def archive(test_db, keyword_embedding_service):
    """Archive with two weeks of embedded reports."""
    store = ReportStore(test_db)
    service = ReportArchiveService(test_db, embedding_service=keyword_embedding_service)

    await store.save(Report(id="r1", nickname="たろう", current_trial="Next.jsのSSR"))
    await store.save(Report(id="r2", nickname="はなこ", current_trial="Firebase認証"))
    await service.archive_current_reports("2026-W01")

    await store.sync([Report(id="r3", nickname="じろう", current_trial="デザインとNext.js")])
    await service.archive_current_reports("2026-W02")
    return service


class TestSearch:
    """Test cases for RAGService.search."""

    @pytest.mark.asyncio
    async def test_ranks_by_similarity(self, archive, keyword_embedding_service, mock_llm):
        rag = RAGService(archive, embedding_service=keyword_embedding_service, llm_service=mock_llm)

        results = await rag.search("Next.jsを使った人は?", top_k=2)

        assert len(results) == 2
        assert results[0].text.startswith("[2026-W01] メンバー: たろう")
        assert results[0].score == pytest.approx(1.0)
        assert results[1].text.startswith("[2026-W02] メンバー: じろう")

    @pytest.mark.asyncio
    async def test_default_top_k(self, archive, keyword_embedding_service, mock_llm, monkeypatch):
        from backend.app.core.config import settings

        monkeypatch.setattr(settings, "rag_top_k", 1)
        rag = RAGService(archive, embedding_service=keyword_embedding_service, llm_service=mock_llm)

        results = await rag.search("Firebase")

        assert len(results) == 1
        assert "はなこ" in results[0].text

    @pytest.mark.asyncio
    async def test_blank_question_makes_no_calls(self, test_db):
        archive = Mock()
        archive.get_all_embeddings = AsyncMock()
        embedding_service = Mock()
        embedding_service.embed = AsyncMock()
        rag = RAGService(archive, embedding_service=embedding_service, llm_service=Mock())

        with pytest.raises(EmptyQuestionError):
            await rag.search("   ")

        archive.get_all_embeddings.assert_not_called()
        embedding_service.embed.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_embedding_data(self, test_db, keyword_embedding_service, keyword_provider, mock_llm):
        archive = ReportArchiveService(test_db, embedding_service=keyword_embedding_service)
        await ReportStore(test_db).save(Report(id="r1", nickname="たろう", progress="進捗"))
        await archive.archive_current_reports("2026-W01", with_embeddings=False)
        keyword_provider.calls.clear()

        rag = RAGService(archive, embedding_service=keyword_embedding_service, llm_service=mock_llm)

        with pytest.raises(NoEmbeddingDataError):
            await rag.answer_question("質問")

        assert keyword_provider.calls == []
        mock_llm.answer_with_context.assert_not_called()


class TestAnswerQuestion:
    """Test cases for RAGService.answer_question."""

    @pytest.mark.asyncio
    async def test_answer_is_returned_verbatim(self, archive, keyword_embedding_service, mock_llm):
        rag = RAGService(archive, embedding_service=keyword_embedding_service, llm_service=mock_llm)

        answer = await rag.answer_question("  Next.jsを使った人は?  ", top_k=1)

        assert answer == "たろうさんがNext.jsを試しました。"
        question, documents = mock_llm.answer_with_context.call_args.args
        assert question == "Next.jsを使った人は?"
        assert len(documents) == 1
        assert documents[0].text.startswith("[2026-W01]")
