"""
Ordering of scored papers.
"""

import math
from typing import Iterable, List, Optional

from ..models import ScoredPaper


def rank_papers(scored: Iterable[ScoredPaper], limit: Optional[int] = None) -> List[ScoredPaper]:
    """Sort papers by final score, highest first.

    The sort is stable, so papers with equal scores keep their input order.
    """
    ranked = sorted(scored, key=lambda item: item.scores.final, reverse=True)
    if limit is not None:
        ranked = ranked[:max(0, limit)]
    return ranked


def top_fraction(ranked: List[ScoredPaper], fraction: float) -> List[ScoredPaper]:
    """Leading ``fraction`` of an already ranked list, rounded up."""
    return ranked[:math.ceil(len(ranked) * fraction)]
