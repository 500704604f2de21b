"""Embedding validation and cosine similarity helpers (numpy).

Used by the embedding generator before a vector leaves the pipeline and
by the record store before a vector is written, so a malformed vector is
rejected at both boundaries.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from src.utils.errors import EmbeddingValidationError


def validate_embedding(
    vector: Sequence[float] | None,
    dimension: int,
    provider_name: str | None = None,
) -> list[float]:
    """Return *vector* as a list of floats, or raise if it is unusable.

    Raises
    ------
    EmbeddingValidationError
        If the vector is missing, not numeric, not exactly *dimension*
        components long, or contains NaN or infinite values.
    """
    if vector is None:
        raise EmbeddingValidationError("Embedding is missing", provider_name)
    try:
        arr = np.asarray(vector, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise EmbeddingValidationError(
            f"Embedding is not a numeric vector: {exc}", provider_name
        ) from exc

    if arr.ndim != 1 or arr.shape[0] != dimension:
        got = arr.shape[0] if arr.ndim == 1 else f"shape {arr.shape}"
        raise EmbeddingValidationError(
            f"Embedding dimension mismatch: expected {dimension}, got {got}",
            provider_name,
        )
    if not np.isfinite(arr).all():
        raise EmbeddingValidationError(
            "Embedding contains non-finite values", provider_name
        )
    return arr.tolist()


def cosine_similarities(query: Sequence[float], matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """Cosine similarity of *query* against every row of *matrix*.

    Zero-norm rows (and a zero-norm query) score ``0.0``.  Results are
    clipped to ``[-1, 1]`` to absorb floating point drift.
    """
    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    if m.size == 0:
        return np.zeros(0, dtype=np.float64)

    norms = np.linalg.norm(m, axis=1) * np.linalg.norm(q)
    dots = m @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / norms, 0.0)
    return np.clip(sims, -1.0, 1.0)
