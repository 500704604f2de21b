"""Chat over saved links: retrieval ranker + answer generator."""

from __future__ import annotations

import structlog

from src.models.record import ChatExchange, RankedRecord
from src.services.answer_generator import AnswerGenerator
from src.services.retrieval_service import RetrievalService
from src.utils.errors import (
    EmbeddingGenerationError,
    EmbeddingValidationError,
    InputValidationError,
)

logger = structlog.get_logger(logger_name=__name__)


class ChatService:
    """Answers a user's question from their own saved links.

    A failure to embed the query does not fail the chat: the answer is
    generated with an empty context instead, and the model says it found
    nothing relevant among the saved links.
    """

    def __init__(
        self,
        retrieval: RetrievalService,
        answer_generator: AnswerGenerator,
        top_k: int = 5,
        similarity_floor: float = 0.0,
    ) -> None:
        self._retrieval = retrieval
        self._answer_generator = answer_generator
        self._top_k = top_k
        self._similarity_floor = similarity_floor

    async def chat(self, query: str, owner_id: str) -> ChatExchange:
        if not query or not query.strip():
            raise InputValidationError("Query is required")
        query = query.strip()

        ranked: list[RankedRecord]
        try:
            ranked = await self._retrieval.rank(
                query,
                owner_id,
                top_k=self._top_k,
                similarity_floor=self._similarity_floor,
            )
        except (EmbeddingGenerationError, EmbeddingValidationError) as exc:
            logger.warning(
                "chat_retrieval_degraded",
                stage="retrieval",
                owner_id=owner_id,
                error=str(exc),
            )
            ranked = []

        answer = await self._answer_generator.generate(query, ranked)
        logger.info("chat_answered", owner_id=owner_id, context_links=len(ranked))
        return ChatExchange(query=query, ranked_records=ranked, answer=answer)
