"""RAG search and question answering schemas."""

from pydantic import BaseModel, Field


class QuestionRequest(BaseModel):
    """A free-text question over the archived reports."""

    question: str = Field(..., max_length=2000, description="Question text")
    top_k: int | None = Field(None, ge=1, le=50, description="Number of snippets to retrieve")


class ScoredSnippet(BaseModel):
    """One retrieved archive snippet."""

    text: str = Field(..., description="Snippet text prefixed with its week id")
    score: float = Field(..., description="Cosine similarity to the question")


class SearchResponse(BaseModel):
    """Ranked snippets for a question."""

    results: list[ScoredSnippet]


class AnswerResponse(BaseModel):
    """Generated answer."""

    answer: str
