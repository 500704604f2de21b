"""Short summary generation for saved links."""

from __future__ import annotations

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.record import SUMMARY_PLACEHOLDER
from src.utils.errors import LLMError
from src.utils.retry import retry_async

logger = structlog.get_logger(logger_name=__name__)

_MAX_INPUT_CHARS = 8000

_SUMMARY_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates concise summaries. "
    "Create a 3-4 line summary of the provided content. "
    "Focus on the main points and key information."
)


def clip_input(content: str, max_chars: int = _MAX_INPUT_CHARS) -> str:
    """Truncate generator input, marking the cut with ``...``."""
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + "..."


class Summarizer:
    """Produces a 3-4 line summary of extracted page content.

    Generation failures are retried up to ``max_attempts`` times; once the
    budget is spent the fixed placeholder summary is returned, so
    :meth:`summarize` never raises.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        max_attempts: int = 3,
        backoff: float = 0.5,
    ) -> None:
        self._llm = llm
        self._max_attempts = max_attempts
        self._backoff = backoff

    async def summarize(self, content: str) -> str:
        user_prompt = clip_input(content)

        async def _attempt() -> str:
            response = await self._llm.complete(
                system_prompt=_SUMMARY_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                temperature=0.5,
                max_tokens=150,
            )
            summary = (response or "").strip()
            if not summary:
                raise LLMError(
                    message="Empty summary returned",
                    provider_name=self._llm.get_provider_name(),
                )
            return summary

        try:
            return await retry_async(
                _attempt,
                attempts=self._max_attempts,
                backoff=self._backoff,
                retry_on=(LLMError,),
                event="summary_attempt_failed",
                logger=logger,
            )
        except LLMError as exc:
            logger.warning(
                "summary_generation_degraded",
                stage="summary",
                error=str(exc),
            )
            return SUMMARY_PLACEHOLDER
