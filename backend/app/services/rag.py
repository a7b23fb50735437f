"""
Question answering over archived weekly reports.

Embeds the question, ranks every archived report embedding by cosine
similarity and lets the LLM answer from the top matches only.
"""

import logging

from backend.app.core.config import settings
from backend.app.core.exceptions import EmptyQuestionError, NoEmbeddingDataError
from backend.app.services.archive import ReportArchiveService
from backend.app.services.embedding import EmbeddingService, get_embedding_service
from backend.app.services.llm import LLMService, get_llm_service
from backend.app.services.similarity import ScoredText, rank_by_similarity

logger = logging.getLogger(__name__)


class RAGService:
    """Retrieval-augmented answers from the report archive."""

    def __init__(
        self,
        archive: ReportArchiveService,
        embedding_service: EmbeddingService | None = None,
        llm_service: LLMService | None = None,
    ):
        self.archive = archive
        self._embedding_service = embedding_service
        self._llm_service = llm_service

    @property
    def embedding_service(self) -> EmbeddingService:
        if self._embedding_service is None:
            self._embedding_service = get_embedding_service()
        return self._embedding_service

    @property
    def llm_service(self) -> LLMService:
        if self._llm_service is None:
            self._llm_service = get_llm_service()
        return self._llm_service

    async def search(self, question: str, top_k: int | None = None) -> list[ScoredText]:
        """
        Return the archived snippets most similar to a question.

        Raises:
            EmptyQuestionError: If the question is blank
            NoEmbeddingDataError: If nothing in the archive has an embedding
        """
        question = question.strip()
        if not question:
            raise EmptyQuestionError()

        embeddings = await self.archive.get_all_embeddings()
        if not embeddings:
            raise NoEmbeddingDataError()

        query_vector = await self.embedding_service.embed(question)
        results = rank_by_similarity(
            query_vector,
            [(item.text, item.embedding) for item in embeddings],
            top_k or settings.rag_top_k,
        )

        logger.info(f"[RAG] {len(embeddings)} candidates, top score {results[0].score:.3f}")
        return results

    async def answer_question(self, question: str, top_k: int | None = None) -> str:
        """
        Answer a question from the most relevant archived reports.

        Raises:
            EmptyQuestionError: If the question is blank
            NoEmbeddingDataError: If nothing in the archive has an embedding
            EmbeddingServiceError / LLMServiceError: If a gateway call fails
        """
        documents = await self.search(question, top_k)
        return await self.llm_service.answer_with_context(question.strip(), documents)
