"""
LLM service for report summarization, teasers, idea titles and RAG answers.

Uses an OpenAI-compatible chat completions endpoint over httpx.
"""

import json
import logging
import re
import time
from typing import Sequence

import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import ConfigurationError, LLMServiceError, ValidationFailedError
from backend.app.schemas.report import ReportFields, ReportSummary
from backend.app.services.similarity import ScoredText

logger = logging.getLogger(__name__)


NO_REPORT_TEXT = "今週の報告なし"
DEFAULT_TEASER = "報告あり..."
NO_MATCH_ANSWER = "該当する報告が見つかりませんでした"

# Transport failures plus malformed payloads (non-JSON body, missing or null fields)
PROVIDER_ERRORS = (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError, AttributeError)

SUMMARIZE_SYSTEM_PROMPT = """あなたは週次報告会の議事録作成アシスタントです。
メンバーが今週の活動を口頭で報告した音声テキストを、3つの項目に分けて簡潔にまとめるのがあなたの役割です。

まとめ方:
- 各項目は2〜4文程度で簡潔にまとめる
- 具体的な数字や固有名詞はできるだけ残す
- 「です・ます」調で統一する
- 情報が不足している項目は「今週の報告なし」とする"""

TEASER_PROMPT = """あなたは本の帯や背表紙を書くプロのコピーライターです。
以下の経過報告から、「なんだろう！読みたい！」と思わせる魅力的な書き出しを生成してください。

【経過報告】
今試していること: {current_trial}
経過報告: {progress}
結果報告・考察: {result}

【出力ルール】
- 18文字以上20文字以内の短い文章にする
- 本の帯のように、好奇心を刺激する言い回しにする
- 具体的な技術名やキーワードを含める
- 「！」や「？」などの記号は使わない
- 文章だけを出力する(説明や前置きは不要)

良い例:
- "Next.js、ついに解決"
- "UIが劇的に進化した日"
- "エラーが教えてくれたこと"
"""

TITLE_PROMPT = """以下のアイデアの内容から、簡潔で魅力的なタイトルを生成してください。
タイトルは15文字以内で、アイデアの核心を表現してください。
タイトルのみを出力し、他の説明は不要です。

【アイデアの内容】
{content}

【タイトル】"""

RAG_SYSTEM_PROMPT = f"""あなたは過去の週次報告を検索して回答するアシスタントです。
与えられた関連文書だけを根拠に、質問に答えてください。

回答ルール:
- 関連文書の内容に基づいて回答する
- 具体的な週やメンバー名を含めて回答する
- 関連文書に情報がない場合は「{NO_MATCH_ANSWER}」と回答する
- 簡潔で分かりやすい日本語で回答する"""

_QUOTE_PATTERN = re.compile(r"^[\"'「『]|[\"'」』]$")


class OpenAIProvider:
    """OpenAI GPT provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model name
            base_url: API base URL
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.base_url = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
        response_format: dict | None = None,
        model: str | None = None,
    ) -> str:
        """
        Generate text using OpenAI API.

        Args:
            prompt: User prompt
            system_prompt: System instruction
            temperature: Sampling temperature (0-2)
            max_tokens: Maximum tokens to generate
            response_format: Optional JSON schema for structured output
            model: Model override for this call

        Returns:
            Generated text (or JSON string if response_format is provided)

        Raises:
            httpx.HTTPError: If API request fails
        """
        messages = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        messages.append({"role": "user", "content": prompt})

        model_name = model or self.model

        logger.info(f"[LLM REQUEST] Model: {model_name}, Temperature: {temperature}, Structured: {response_format is not None}")
        logger.info(f"[LLM REQUEST] User prompt: {prompt[:200]}...")

        start_time = time.time()

        request_body = {
            "model": model_name,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if response_format:
            request_body["response_format"] = response_format

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=request_body,
                timeout=self.timeout,
            )

            response.raise_for_status()
            data = response.json()

            content = data["choices"][0]["message"]["content"]
            if not isinstance(content, str):
                raise ValueError(f"LLM response content is {type(content).__name__}, not text")
            result = content.strip()
            elapsed_time = time.time() - start_time

            logger.info(f"[LLM RESPONSE] Time: {elapsed_time:.2f}s")
            logger.info(f"[LLM RESPONSE] Result: {result[:200]}...")

            return result


class LLMService:
    """
    Service for LLM-based text generation.

    Provides:
    - Report summarization (voice transcript -> three report fields)
    - Report teaser generation
    - Idea title generation
    - Grounded answers over retrieved archive snippets

    Examples:
        >>> service = LLMService()
        >>> summary = await service.summarize_report("今週はNext.jsを...")
        >>> answer = await service.answer_with_context("誰がFirebaseを試した?", docs)
    """

    def __init__(self, provider: OpenAIProvider | None = None):
        """
        Initialize LLM service.

        Args:
            provider: OpenAI provider instance. If None, creates from config.
        """
        if provider is None:
            provider = self._create_provider_from_config()
        self.provider = provider

    @staticmethod
    def _create_provider_from_config() -> OpenAIProvider:
        """Create OpenAI provider from environment config."""
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY")

        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        )

    async def summarize_report(self, transcript: str) -> ReportSummary:
        """
        Split a spoken weekly report into the three report fields using Structured Output.

        Args:
            transcript: Voice transcript

        Returns:
            ReportSummary with blank fields replaced by the "no report" text

        Raises:
            ValidationFailedError: If transcript is blank
            LLMServiceError: If the LLM call fails or returns invalid JSON
        """
        logger.info(f"[LLM METHOD] summarize_report() called with transcript length {len(transcript)}")

        if not transcript.strip():
            raise ValidationFailedError("Transcript cannot be empty")

        prompt = f"""以下の音声テキストを3つの項目に分けてまとめてください:

{transcript}"""

        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": "report_summary",
                "strict": True,
                "schema": {
                    "type": "object",
                    "properties": {
                        "current_trial": {
                            "type": "string",
                            "description": "今試していること（現在取り組んでいる課題や試行）"
                        },
                        "progress": {
                            "type": "string",
                            "description": "経過報告（今週やったこと、進捗状況）"
                        },
                        "result": {
                            "type": "string",
                            "description": "結果報告・考察（得られた結果、気づき、次のアクション）"
                        },
                    },
                    "required": ["current_trial", "progress", "result"],
                    "additionalProperties": False
                }
            }
        }

        try:
            response = await self.provider.generate(
                prompt,
                system_prompt=SUMMARIZE_SYSTEM_PROMPT,
                temperature=0.3,
                max_tokens=800,
                response_format=response_format,
            )
            data = json.loads(response)
            if not isinstance(data, dict):
                raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        except json.JSONDecodeError as e:
            logger.error(f"[LLM METHOD] Failed to parse JSON response: {e}")
            raise LLMServiceError("summarize_report", e) from e
        except PROVIDER_ERRORS as e:
            raise LLMServiceError("summarize_report", e) from e

        return ReportSummary(
            current_trial=(data.get("current_trial") or "").strip() or NO_REPORT_TEXT,
            progress=(data.get("progress") or "").strip() or NO_REPORT_TEXT,
            result=(data.get("result") or "").strip() or NO_REPORT_TEXT,
        )

    async def generate_report_teaser(self, report: ReportFields) -> str:
        """
        Generate a short hook line for a report.

        Args:
            report: Report whose narrative fields are summarized

        Returns:
            Teaser of at most teaser_max_length characters followed by "..."

        Raises:
            LLMServiceError: If the LLM call fails
        """
        logger.info(f"[LLM METHOD] generate_report_teaser() called for '{report.nickname}'")

        prompt = TEASER_PROMPT.format(
            current_trial=report.current_trial,
            progress=report.progress,
            result=report.result,
        )

        try:
            teaser = await self.provider.generate(prompt, temperature=0.9, max_tokens=60)
        except PROVIDER_ERRORS as e:
            raise LLMServiceError("generate_report_teaser", e) from e

        teaser = _QUOTE_PATTERN.sub("", teaser.strip()).replace("\n", "").strip()
        teaser = teaser[:settings.teaser_max_length]

        return f"{teaser}..." if teaser else DEFAULT_TEASER

    async def generate_idea_title(self, content: str) -> str:
        """
        Generate a concise title for an idea.

        Args:
            content: Idea content

        Returns:
            Title of at most idea_title_max_length characters

        Raises:
            ValidationFailedError: If content is blank
            LLMServiceError: If the LLM call fails or returns nothing
        """
        logger.info(f"[LLM METHOD] generate_idea_title() called with content='{content[:100]}...'")

        if not content.strip():
            raise ValidationFailedError("Idea content cannot be empty")

        try:
            title = await self.provider.generate(
                TITLE_PROMPT.format(content=content),
                temperature=0.7,
                max_tokens=60,
                model=settings.openai_title_model,
            )
        except PROVIDER_ERRORS as e:
            raise LLMServiceError("generate_idea_title", e) from e

        title = _QUOTE_PATTERN.sub("", title.strip()).replace("\n", " ").strip()
        if not title:
            raise LLMServiceError("generate_idea_title", ValueError("empty title"))

        return title[:settings.idea_title_max_length]

    async def answer_with_context(
        self,
        question: str,
        documents: Sequence[ScoredText],
    ) -> str:
        """
        Answer a question grounded in retrieved archive snippets.

        Args:
            question: User question
            documents: Ranked snippets, each annotated with its similarity

        Returns:
            Model answer, verbatim

        Raises:
            ValidationFailedError: If question is blank or no documents are given
            LLMServiceError: If the LLM call fails
        """
        logger.info(f"[LLM METHOD] answer_with_context() called with question='{question[:100]}', documents={len(documents)}")

        if not question.strip():
            raise ValidationFailedError("Question cannot be empty")
        if not documents:
            raise ValidationFailedError("At least one context document is required")

        context = "\n\n".join(
            f"[文書{i}] (関連度: {doc.score * 100:.1f}%)\n{doc.text}"
            for i, doc in enumerate(documents, 1)
        )

        prompt = f"""【関連する過去の報告】
{context}

【質問】
{question}"""

        try:
            return await self.provider.generate(
                prompt,
                system_prompt=RAG_SYSTEM_PROMPT,
                temperature=0.3,
                max_tokens=1000,
            )
        except PROVIDER_ERRORS as e:
            raise LLMServiceError("answer_with_context", e) from e


# Global service instance
_llm_service: LLMService | None = None


def get_llm_service() -> LLMService:
    """
    Get singleton LLM service instance.

    Returns:
        Cached LLMService instance

    Raises:
        ConfigurationError: If OPENAI_API_KEY is not set
    """
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service
