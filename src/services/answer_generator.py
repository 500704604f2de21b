"""Grounded answer generation over ranked saved links.

Builds a numbered context block from the ranked records and asks the
model to answer from it, naming which link supplied each piece of
information and falling back to general knowledge (and saying so) when
the links do not cover the question.  The generator always returns a
non-empty string; failures become fixed fallback messages.
"""

from __future__ import annotations

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.record import RankedRecord
from src.utils.errors import LinkVaultError

logger = structlog.get_logger(logger_name=__name__)

EMPTY_ANSWER = "I could not generate a response."
ERROR_ANSWER = (
    "Sorry, I encountered an error while generating a response. Please try again later."
)

_SYSTEM_PROMPT_TEMPLATE = """\
You are a helpful assistant that answers questions based on the user's saved links.
Use the following saved links as context for answering the user's question.
When you find information in the provided links that helps answer the query, mention which link(s) contained that information.

If the links don't contain relevant information to answer the question, acknowledge that and provide your best response based on your general knowledge.

CONTEXT LINKS:
{context}"""

_NO_CONTEXT = "(The user has no saved links relevant to this question.)"


def build_context(records: list[RankedRecord]) -> str:
    """Format ranked records as ``LINK n`` blocks separated by ``---``."""
    blocks = [
        f"LINK {index}:\n"
        f"TITLE: {record.title or 'Untitled'}\n"
        f"URL: {record.url}\n"
        f"SUMMARY: {record.summary or 'No summary available'}\n"
        for index, record in enumerate(records, start=1)
    ]
    return "\n---\n".join(blocks)


class AnswerGenerator:
    """Answers a query using ranked records as context."""

    def __init__(self, llm: ILLMProvider) -> None:
        self._llm = llm

    async def generate(self, query: str, records: list[RankedRecord]) -> str:
        context = build_context(records) or _NO_CONTEXT
        try:
            response = await self._llm.complete(
                system_prompt=_SYSTEM_PROMPT_TEMPLATE.format(context=context),
                user_prompt=query,
                temperature=0.5,
                max_tokens=800,
            )
        except LinkVaultError as exc:
            logger.error(
                "answer_generation_failed",
                provider=self._llm.get_provider_name(),
                error=str(exc),
            )
            return ERROR_ANSWER

        answer = (response or "").strip()
        if not answer:
            logger.warning("answer_generation_empty", provider=self._llm.get_provider_name())
            return EMPTY_ANSWER
        return answer
