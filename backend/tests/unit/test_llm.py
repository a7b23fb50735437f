"""Unit tests for LLMService."""

import json

import pytest
from unittest.mock import AsyncMock, Mock, patch
import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import ConfigurationError, LLMServiceError, ValidationFailedError
from backend.app.schemas.report import ReportFields
from backend.app.services.llm import (
    DEFAULT_TEASER,
    NO_REPORT_TEXT,
    OpenAIProvider,
    LLMService,
    get_llm_service,
)
from backend.app.services.similarity import ScoredText


@pytest.fixture
def mock_provider():
    """Provider whose generate() is an AsyncMock."""
    provider = Mock(spec=OpenAIProvider)
    provider.generate = AsyncMock()
    return provider


@pytest.fixture
def service(mock_provider):
    return LLMService(provider=mock_provider)


class TestOpenAIProvider:
    """Test cases for OpenAIProvider class."""

    def test_initialization(self):
        """Test OpenAIProvider initialization."""
        provider = OpenAIProvider(api_key="test-key", model="gpt-4o")

        assert provider.api_key == "test-key"
        assert provider.model == "gpt-4o"
        assert provider.base_url == "https://api.openai.com/v1/chat/completions"

    def test_initialization_custom_base_url(self):
        provider = OpenAIProvider(api_key="test-key", base_url="http://localhost:11434/v1/")

        assert provider.base_url == "http://localhost:11434/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_generate_success(self):
        """Test successful text generation."""
        provider = OpenAIProvider(api_key="test-key")

        # Mock httpx.AsyncClient - use Mock for response since json() is sync
        mock_response = Mock()
        mock_response.json.return_value = {
            "choices": [
                {"message": {"content": "  Generated text response \n"}}
            ]
        }
        mock_response.raise_for_status = Mock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=mock_response
            )

            result = await provider.generate("Test prompt")

            assert result == "Generated text response"

    @pytest.mark.asyncio
    async def test_generate_with_system_prompt_and_model_override(self):
        """Test generation with system prompt and per-call model."""
        provider = OpenAIProvider(api_key="test-key")

        mock_response = Mock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "Response"}}]
        }
        mock_response.raise_for_status = Mock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=mock_response
            )

            await provider.generate(
                "User prompt",
                system_prompt="You are a helpful assistant",
                model="gpt-4o-mini-title",
            )

            call_args = mock_client.return_value.__aenter__.return_value.post.call_args
            body = call_args.kwargs["json"]

            assert body["model"] == "gpt-4o-mini-title"
            assert body["messages"][0] == {"role": "system", "content": "You are a helpful assistant"}
            assert body["messages"][1]["role"] == "user"
            assert "response_format" not in body

    @pytest.mark.asyncio
    async def test_generate_http_error(self):
        """Test handling of HTTP errors."""
        provider = OpenAIProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.HTTPError("API Error")
            )

            with pytest.raises(httpx.HTTPError):
                await provider.generate("Test prompt")


class TestSummarizeReport:
    """Test cases for summarize_report."""

    @pytest.mark.asyncio
    async def test_summarize_success(self, service, mock_provider):
        mock_provider.generate.return_value = json.dumps({
            "current_trial": "Next.jsのApp Routerを試しています。",
            "progress": "ルーティングを移行しました。",
            "result": "表示速度が改善しました。",
        })

        summary = await service.summarize_report("今週はNext.jsのApp Routerを...")

        assert summary.current_trial == "Next.jsのApp Routerを試しています。"
        assert summary.progress == "ルーティングを移行しました。"
        assert summary.result == "表示速度が改善しました。"
        assert mock_provider.generate.call_args.kwargs["response_format"]["type"] == "json_schema"

    @pytest.mark.asyncio
    async def test_blank_fields_become_no_report_text(self, service, mock_provider):
        mock_provider.generate.return_value = json.dumps({
            "current_trial": "Firebaseの検証",
            "progress": "  ",
            "result": "",
        })

        summary = await service.summarize_report("Firebaseの検証をしました")

        assert summary.progress == NO_REPORT_TEXT
        assert summary.result == NO_REPORT_TEXT

    @pytest.mark.asyncio
    async def test_empty_transcript(self, service, mock_provider):
        with pytest.raises(ValidationFailedError):
            await service.summarize_report("   ")

        mock_provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_json(self, service, mock_provider):
        mock_provider.generate.return_value = "not json"

        with pytest.raises(LLMServiceError, match="summarize_report"):
            await service.summarize_report("transcript")

    @pytest.mark.asyncio
    async def test_http_error(self, service, mock_provider):
        mock_provider.generate.side_effect = httpx.ConnectError("down")

        with pytest.raises(LLMServiceError):
            await service.summarize_report("transcript")


class TestGenerateReportTeaser:
    """Test cases for generate_report_teaser."""

    @pytest.mark.asyncio
    async def test_teaser_is_cleaned_and_suffixed(self, service, mock_provider):
        mock_provider.generate.return_value = "「Next.js、ついに解決」"
        report = ReportFields(nickname="たろう", current_trial="Next.js", progress="", result="")

        teaser = await service.generate_report_teaser(report)

        assert teaser == "Next.js、ついに解決..."

    @pytest.mark.asyncio
    async def test_teaser_is_truncated(self, service, mock_provider):
        mock_provider.generate.return_value = "あ" * 50

        teaser = await service.generate_report_teaser(ReportFields(progress="進捗"))

        assert teaser == "あ" * settings.teaser_max_length + "..."

    @pytest.mark.asyncio
    async def test_empty_output_gives_default(self, service, mock_provider):
        mock_provider.generate.return_value = '""'

        teaser = await service.generate_report_teaser(ReportFields(progress="進捗"))

        assert teaser == DEFAULT_TEASER

    @pytest.mark.asyncio
    async def test_prompt_contains_fields(self, service, mock_provider):
        mock_provider.generate.return_value = "見出し"
        report = ReportFields(current_trial="試行A", progress="経過B", result="結果C")

        await service.generate_report_teaser(report)

        prompt = mock_provider.generate.call_args.args[0]
        assert "試行A" in prompt
        assert "経過B" in prompt
        assert "結果C" in prompt

    @pytest.mark.asyncio
    async def test_http_error(self, service, mock_provider):
        mock_provider.generate.side_effect = httpx.HTTPError("API Error")

        with pytest.raises(LLMServiceError):
            await service.generate_report_teaser(ReportFields(progress="進捗"))


class TestGenerateIdeaTitle:
    """Test cases for generate_idea_title."""

    @pytest.mark.asyncio
    async def test_title_uses_title_model(self, service, mock_provider):
        mock_provider.generate.return_value = "『社内勉強会の録画共有』"

        title = await service.generate_idea_title("勉強会を録画して共有したい")

        assert title == "社内勉強会の録画共有"
        assert mock_provider.generate.call_args.kwargs["model"] == settings.openai_title_model

    @pytest.mark.asyncio
    async def test_title_is_truncated(self, service, mock_provider):
        mock_provider.generate.return_value = "タ" * 100

        title = await service.generate_idea_title("content")

        assert len(title) == settings.idea_title_max_length

    @pytest.mark.asyncio
    async def test_empty_title_is_error(self, service, mock_provider):
        mock_provider.generate.return_value = "  "

        with pytest.raises(LLMServiceError):
            await service.generate_idea_title("content")

    @pytest.mark.asyncio
    async def test_blank_content(self, service, mock_provider):
        with pytest.raises(ValidationFailedError):
            await service.generate_idea_title("")

        mock_provider.generate.assert_not_called()


class TestAnswerWithContext:
    """Test cases for answer_with_context."""

    @pytest.mark.asyncio
    async def test_context_format(self, service, mock_provider):
        mock_provider.generate.return_value = "たろうさんがNext.jsを試しました。"
        documents = [
            ScoredText(text="[2026-W02] メンバー: たろう", score=0.876),
            ScoredText(text="[2026-W03] メンバー: はなこ", score=0.5),
        ]

        answer = await service.answer_with_context("誰がNext.jsを試した?", documents)

        assert answer == "たろうさんがNext.jsを試しました。"
        prompt = mock_provider.generate.call_args.args[0]
        assert "[文書1] (関連度: 87.6%)\n[2026-W02] メンバー: たろう" in prompt
        assert "[文書2] (関連度: 50.0%)" in prompt
        assert "誰がNext.jsを試した?" in prompt

    @pytest.mark.asyncio
    async def test_blank_question(self, service, mock_provider):
        with pytest.raises(ValidationFailedError):
            await service.answer_with_context(" ", [ScoredText(text="a", score=1.0)])

    @pytest.mark.asyncio
    async def test_no_documents(self, service, mock_provider):
        with pytest.raises(ValidationFailedError):
            await service.answer_with_context("question", [])

        mock_provider.generate.assert_not_called()


def _malformed_response(kind):
    """Chat completion response whose body cannot yield text."""
    response = Mock()
    response.raise_for_status = Mock()
    if kind == "html":
        response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>Bad Gateway</html>", 0)
    elif kind == "null_content":
        response.json.return_value = {"choices": [{"message": {"content": None}}]}
    elif kind == "no_choices":
        response.json.return_value = {"choices": []}
    else:
        response.json.return_value = {"choices": [{}]}
    return response


MALFORMED_KINDS = ["html", "null_content", "no_choices", "no_message"]


class TestMalformedResponses:
    """Test cases for responses that are not a usable chat completion."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", MALFORMED_KINDS)
    async def test_every_method_raises_llm_service_error(self, kind):
        service = LLMService(provider=OpenAIProvider(api_key="test-key"))

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_malformed_response(kind)
            )

            with pytest.raises(LLMServiceError, match="generate_report_teaser"):
                await service.generate_report_teaser(ReportFields(progress="進捗"))
            with pytest.raises(LLMServiceError, match="generate_idea_title"):
                await service.generate_idea_title("内容")
            with pytest.raises(LLMServiceError, match="answer_with_context"):
                await service.answer_with_context("質問", [ScoredText(text="a", score=1.0)])
            with pytest.raises(LLMServiceError, match="summarize_report"):
                await service.summarize_report("transcript")

    @pytest.mark.asyncio
    async def test_null_content_is_rejected_by_provider(self):
        provider = OpenAIProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=_malformed_response("null_content")
            )

            with pytest.raises(ValueError, match="NoneType"):
                await provider.generate("Test prompt")

    @pytest.mark.asyncio
    async def test_summary_that_is_not_an_object(self, service, mock_provider):
        mock_provider.generate.return_value = '["今試していること"]'

        with pytest.raises(LLMServiceError, match="summarize_report"):
            await service.summarize_report("transcript")


class TestGlobalService:
    """Test cases for the global service accessor."""

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            get_llm_service()

    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "sk-test")

        assert get_llm_service() is get_llm_service()
