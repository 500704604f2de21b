"""Retrieval ranker: free-text query -> owner's most relevant saved links."""

from __future__ import annotations

import structlog

from src.interfaces.record_store import IRecordStore
from src.models.record import RankedRecord
from src.services.embedding_generator import EmbeddingGenerator
from src.utils.errors import InputValidationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_QUERY_PREFIX = "This is about: "


class RetrievalService:
    """Ranks an owner's records by cosine similarity to a query.

    The query is framed with a fixed prefix before embedding so short
    questions land closer to the summary-style text the records were
    embedded from.

    Parameters
    ----------
    embedding_generator:
        Produces the validated query vector.
    store:
        Performs the owner-scoped vector search.
    query_prefix:
        Text prepended to the query before embedding.
    """

    def __init__(
        self,
        embedding_generator: EmbeddingGenerator,
        store: IRecordStore,
        query_prefix: str = DEFAULT_QUERY_PREFIX,
    ) -> None:
        self._embedding_generator = embedding_generator
        self._store = store
        self._query_prefix = query_prefix

    async def rank(
        self,
        query: str,
        owner_id: str,
        top_k: int = 5,
        similarity_floor: float = 0.0,
    ) -> list[RankedRecord]:
        """Return at most *top_k* records scoring above *similarity_floor*.

        Results are ordered by descending similarity, newest first on ties.

        Raises
        ------
        InputValidationError
            If *query* is empty or whitespace.
        EmbeddingGenerationError, EmbeddingValidationError
            If the query could not be embedded.
        """
        if not query or not query.strip():
            raise InputValidationError("Query is required")
        if top_k < 1:
            raise InputValidationError("top_k must be at least 1")

        vector = await self._embedding_generator.generate(f"{self._query_prefix}{query.strip()}")
        ranked = await self._store.search_similar(vector, owner_id, top_k, similarity_floor)
        logger.info(
            "retrieval_ranked",
            owner_id=owner_id,
            returned=len(ranked),
            top_k=top_k,
            floor=similarity_floor,
            best=ranked[0].similarity if ranked else None,
        )
        return ranked
