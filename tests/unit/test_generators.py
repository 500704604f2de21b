"""Unit tests for the summary, tag and embedding generators."""

from __future__ import annotations

import math
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.record import DEFAULT_TAGS, SUMMARY_PLACEHOLDER, filter_tags
from src.services.embedding_generator import EmbeddingGenerator
from src.services.summarizer import Summarizer, clip_input
from src.services.tag_classifier import TagClassifier, parse_tag_response
from src.utils.errors import (
    EmbeddingGenerationError,
    EmbeddingValidationError,
    LLMError,
)


def _embedding_provider(**kwargs) -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.get_provider_name.return_value = "mock-embedding"
    mock.embed_single = AsyncMock(**kwargs)
    return mock


# ======================================================================
# Summarizer
# ======================================================================


class TestSummarizer:
    @pytest.mark.asyncio
    async def test_returns_stripped_summary(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "  A concise summary.\n"
        summary = await Summarizer(mock_llm_provider, backoff=0).summarize("page text")
        assert summary == "A concise summary."

    @pytest.mark.asyncio
    async def test_uses_summary_generation_parameters(self, mock_llm_provider) -> None:
        await Summarizer(mock_llm_provider, backoff=0).summarize("page text")
        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 150
        assert kwargs["user_prompt"] == "page text"

    @pytest.mark.asyncio
    async def test_clips_long_input(self, mock_llm_provider) -> None:
        await Summarizer(mock_llm_provider, backoff=0).summarize("y" * 9000)
        prompt = mock_llm_provider.complete.await_args.kwargs["user_prompt"]
        assert prompt == "y" * 8000 + "..."

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = [LLMError("rate limited"), "Recovered summary"]
        summary = await Summarizer(mock_llm_provider, backoff=0).summarize("text")
        assert summary == "Recovered summary"
        assert mock_llm_provider.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_placeholder_after_exhausting_attempts(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError("down")
        summary = await Summarizer(mock_llm_provider, max_attempts=3, backoff=0).summarize("text")
        assert summary == SUMMARY_PLACEHOLDER
        assert mock_llm_provider.complete.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_output_counts_as_failure(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "   "
        summary = await Summarizer(mock_llm_provider, max_attempts=2, backoff=0).summarize("text")
        assert summary == SUMMARY_PLACEHOLDER

    def test_clip_input_short_text_unchanged(self) -> None:
        assert clip_input("short") == "short"


# ======================================================================
# Tag parsing / filtering
# ======================================================================


class TestParseTagResponse:
    @pytest.mark.parametrize(
        "response, expected",
        [
            ('["Tutorial", "Tool"]', ["Tutorial", "Tool"]),
            ('```json\n["News", "Article"]\n```', ["News", "Article"]),
            ("Here you go: ['Video', 'Music']", ["Video", "Music"]),
            ('["Blog", "Review",]', ["Blog", "Review"]),
            ("Research, Documentation", ["Research", "Documentation"]),
            ("", []),
        ],
    )
    def test_recovers_candidates(self, response: str, expected: list[str]) -> None:
        assert parse_tag_response(response) == expected

    def test_drops_non_string_items(self) -> None:
        assert parse_tag_response('["Blog", 3, null]') == ["Blog"]


class TestFilterTags:
    def test_canonicalises_case(self) -> None:
        assert filter_tags(["tutorial", "SOCIAL MEDIA"]) == ["Tutorial", "Social Media"]

    def test_drops_unknown_and_duplicates(self) -> None:
        assert filter_tags(["Blog", "Cooking", "blog"]) == ["Blog"]

    def test_caps_at_five(self) -> None:
        tags = ["Article", "Blog", "News", "Tutorial", "Video", "Music", "Tool"]
        assert filter_tags(tags) == ["Article", "Blog", "News", "Tutorial", "Video"]


# ======================================================================
# TagClassifier
# ======================================================================


class TestTagClassifier:
    @pytest.mark.asyncio
    async def test_filters_model_output(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = '["documentation", "Recipes", "Tool"]'
        tags = await TagClassifier(mock_llm_provider, backoff=0).classify("content")
        assert tags == ["Documentation", "Tool"]

    @pytest.mark.asyncio
    async def test_uses_tagging_parameters(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = '["News"]'
        await TagClassifier(mock_llm_provider, backoff=0).classify("content")
        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_defaults_when_nothing_usable(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "I cannot categorize this."
        tags = await TagClassifier(mock_llm_provider, backoff=0).classify("content")
        assert tags == list(DEFAULT_TAGS)

    @pytest.mark.asyncio
    async def test_defaults_when_provider_fails(self, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError("timeout")
        tags = await TagClassifier(mock_llm_provider, max_attempts=2, backoff=0).classify("content")
        assert tags == ["Article", "Blog"]
        assert mock_llm_provider.complete.await_count == 2


# ======================================================================
# EmbeddingGenerator
# ======================================================================


class TestEmbeddingGenerator:
    @pytest.mark.asyncio
    async def test_returns_valid_vector(self) -> None:
        provider = _embedding_provider(return_value=[0.1, 0.2, 0.3])
        vector = await EmbeddingGenerator(provider, dimension=3, backoff=0).generate("text")
        assert vector == pytest.approx([0.1, 0.2, 0.3])

    @pytest.mark.asyncio
    async def test_truncates_input(self) -> None:
        provider = _embedding_provider(return_value=[1.0, 0.0, 0.0])
        await EmbeddingGenerator(provider, dimension=3, backoff=0).generate("z" * 10_000)
        assert provider.embed_single.await_args.args[0] == "z" * 8000

    @pytest.mark.asyncio
    async def test_retries_provider_errors(self) -> None:
        provider = _embedding_provider(
            side_effect=[EmbeddingGenerationError("flaky"), [0.0, 1.0, 0.0]]
        )
        vector = await EmbeddingGenerator(provider, dimension=3, backoff=0).generate("text")
        assert vector == [0.0, 1.0, 0.0]
        assert provider.embed_single.await_count == 2

    @pytest.mark.asyncio
    async def test_raises_after_exhausting_attempts(self) -> None:
        provider = _embedding_provider(side_effect=EmbeddingGenerationError("down"))
        generator = EmbeddingGenerator(provider, dimension=3, max_attempts=3, backoff=0)
        with pytest.raises(EmbeddingGenerationError):
            await generator.generate("text")
        assert provider.embed_single.await_count == 3

    @pytest.mark.asyncio
    async def test_rejects_wrong_dimension(self) -> None:
        provider = _embedding_provider(return_value=[0.1, 0.2])
        with pytest.raises(EmbeddingValidationError):
            await EmbeddingGenerator(provider, dimension=3, backoff=0).generate("text")

    @pytest.mark.asyncio
    async def test_rejects_non_finite(self) -> None:
        provider = _embedding_provider(return_value=[0.1, math.nan, 0.3])
        with pytest.raises(EmbeddingValidationError):
            await EmbeddingGenerator(provider, dimension=3, backoff=0).generate("text")

    def test_exposes_dimension(self) -> None:
        assert EmbeddingGenerator(_embedding_provider(), dimension=768).dimension == 768
