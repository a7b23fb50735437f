"""
Similarity engine for archived report embeddings.

Cosine similarity between fixed-length vectors and a linear-scan top-K
ranking. Zero vectors are given similarity 0 instead of NaN, and equal
scores keep their input order so results are deterministic.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine_similarity

from backend.app.core.exceptions import DimensionMismatchError

Vector = Sequence[float]


@dataclass(frozen=True)
class ScoredText:
    """A candidate text with its similarity to the query."""

    text: str
    score: float


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        Similarity in [-1, 1]; 0.0 if either vector has zero norm

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Clip floating-point drift (e.g. 1.0000000000000002)
    return max(-1.0, min(1.0, similarity))


def rank_by_similarity(
    query: Vector,
    candidates: Sequence[tuple[str, Vector]],
    top_k: int,
) -> list[ScoredText]:
    """
    Rank candidate texts by cosine similarity to a query vector.

    Args:
        query: Query vector
        candidates: (text, vector) pairs to rank
        top_k: Maximum number of results

    Returns:
        Up to top_k ScoredText entries, highest score first. Equal scores
        keep their input order.

    Raises:
        ValueError: If top_k is smaller than 1
        DimensionMismatchError: If any candidate dimension differs from the query
    """
    if top_k < 1:
        raise ValueError("top_k must be at least 1")

    if not candidates:
        return []

    for _, vector in candidates:
        if len(vector) != len(query):
            raise DimensionMismatchError(len(query), len(vector))

    query_matrix = np.asarray(query, dtype=np.float64).reshape(1, -1)
    candidate_matrix = np.asarray([vector for _, vector in candidates], dtype=np.float64)

    # sklearn leaves zero rows at zero after normalization, so their similarity is 0
    scores = pairwise_cosine_similarity(query_matrix, candidate_matrix)[0]
    scores = np.clip(scores, -1.0, 1.0)

    order = np.argsort(-scores, kind="stable")[:top_k]

    return [ScoredText(text=candidates[idx][0], score=float(scores[idx])) for idx in order]
