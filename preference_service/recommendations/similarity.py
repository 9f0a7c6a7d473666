"""
Cosine similarity primitives and their aggregates.

All functions are pure. Vectors may be any sequence of floats (lists coming
from the embedding provider, or numpy arrays); they are compared with numpy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence
import math

import numpy as np


# Returned by the max-style aggregates when nothing qualifies. It compares
# below every real cosine similarity, including -1.0.
NO_MATCH = float("-inf")

DEFAULT_ALPHA = 0.6


class DimensionMismatchError(ValueError):
    """Two vectors of different dimensionality were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Cannot compare vectors of dimension {left} and {right}")
        self.left = left
        self.right = right


@dataclass(slots=True, frozen=True)
class SimilarityHit:
    """Similarity of one candidate, keeping its position in the candidate list."""

    index: int
    similarity: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Zero-magnitude vectors have similarity 0.0 with anything.

    Raises:
        DimensionMismatchError: if the vectors differ in length
    """
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise DimensionMismatchError(va.size, vb.size)

    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def similarity_list(vector: Sequence[float], candidates: Sequence[Sequence[float]]) -> List[SimilarityHit]:
    """Similarity of ``vector`` to every candidate, in candidate order."""
    return [
        SimilarityHit(index=index, similarity=cosine_similarity(vector, candidate))
        for index, candidate in enumerate(candidates)
    ]


def max_similarity(
    vector: Sequence[float],
    candidates: Sequence[Sequence[float]],
    threshold: float = 0.0,
) -> float:
    """Greatest similarity between ``vector`` and a candidate above ``threshold``.

    Returns ``NO_MATCH`` when ``candidates`` is empty or no candidate exceeds
    the threshold.
    """
    best = NO_MATCH
    for candidate in candidates:
        similarity = cosine_similarity(vector, candidate)
        if similarity > best and similarity > threshold:
            best = similarity
    return best


def max_similarity_many(
    sources: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
    threshold: float = 0.0,
) -> float:
    """Greatest best-match similarity of any target against ``sources``."""
    best = NO_MATCH
    for target in targets:
        similarity = max_similarity(target, sources)
        if similarity > best and similarity > threshold:
            best = similarity
    return best


def average_similarity_many(
    sources: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
    threshold: float = 0.0,
) -> float:
    """Mean over all targets of their best match against ``sources``.

    Matches at or below ``threshold`` contribute 0 but still count in the
    denominator.
    """
    if not targets:
        return 0.0

    total = 0.0
    for target in targets:
        similarity = max_similarity(target, sources)
        if similarity > threshold:
            total += similarity
    return total / len(targets)


def combined_similarity(
    sources: Sequence[Sequence[float]],
    targets: Sequence[Sequence[float]],
    weights: Optional[Sequence[float]] = None,
    threshold: float = 0.0,
    alpha: float = DEFAULT_ALPHA,
) -> float:
    """Blend of the strongest weighted match and the weighted mean match.

    For every target the best similarity against ``sources`` is taken. Targets
    whose best similarity is at or below ``threshold``, or whose weight is not
    positive, are ignored. The result is
    ``alpha * max(sim * w) + (1 - alpha) * sum(sim * w) / sum(w)`` over the
    remaining targets, or 0.0 when none remain.

    Args:
        sources: vectors describing the paper facet
        targets: vectors of the profile vocabulary
        weights: per-target weights parallel to ``targets``; 1.0 each if omitted
        threshold: minimum best-match similarity for a target to count
        alpha: share of the strongest match in the blend
    """
    if weights is not None and len(weights) != len(targets):
        raise ValueError(
            f"Got {len(weights)} weights for {len(targets)} targets"
        )

    sum_weighted = 0.0
    total_weight = 0.0
    max_weighted = NO_MATCH

    for i, target in enumerate(targets):
        weight = 1.0 if weights is None else float(weights[i])

        local_max = NO_MATCH
        for source in sources:
            similarity = cosine_similarity(source, target)
            if similarity > local_max:
                local_max = similarity

        if local_max <= threshold or weight <= 0:
            continue

        weighted = local_max * weight
        sum_weighted += weighted
        total_weight += weight
        if weighted > max_weighted:
            max_weighted = weighted

    if total_weight <= 0:
        return 0.0

    return alpha * max_weighted + (1 - alpha) * (sum_weighted / total_weight)


def sigmoid(x: float, k: float = 1.0) -> float:
    """Logistic function ``1 / (1 + e^(-k * x))`` without overflow."""
    z = k * x
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)
