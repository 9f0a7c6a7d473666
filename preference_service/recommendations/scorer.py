"""
Facet scorer: relevance of one embedded paper for one profile snapshot.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ..models import (
    EmbeddedFacets,
    EmbeddedPaper,
    PreferenceProfile,
    ScoreBreakdown,
    ScoredPaper,
    WeightedTerm,
)
from .similarity import combined_similarity, sigmoid
from .tuning import ScoringConfig

logger = logging.getLogger(__name__)

# Compresses the unbounded weighted sum before squashing it into (0, 1)
SCORE_PRE_SCALE = 0.5


def _term_vectors(terms: Sequence[WeightedTerm]) -> Tuple[List[List[float]], List[float]]:
    """Embeddings and parallel weights of the terms that carry an embedding."""
    embeddings: List[List[float]] = []
    weights: List[float] = []
    for term in terms:
        if term.embedding is None:
            continue
        embeddings.append(term.embedding)
        weights.append(term.weight)
    return embeddings, weights


class FacetScorer:
    """Scores papers against the interest and disinterest vocabularies of a profile."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def score(self, facets: EmbeddedFacets, profile: PreferenceProfile) -> ScoreBreakdown:
        """Per-facet similarities and the final sigmoid-squashed score.

        Raises:
            DimensionMismatchError: if paper and profile vectors come from
                different embedding models
        """
        cfg = self.config

        topic = [facets.topic.embedding] if facets.topic is not None else []
        tags = [item.embedding for item in facets.tags]
        target = [item.embedding for item in facets.target]

        interest_tags, interest_tag_weights = _term_vectors(profile.interest.tags)
        interest_target, interest_target_weights = _term_vectors(profile.interest.target)
        other_tags, other_tag_weights = _term_vectors(profile.not_interest.tags)
        other_target, other_target_weights = _term_vectors(profile.not_interest.target)

        def similarity(sources, targets, weights, threshold):
            return combined_similarity(sources, targets, weights, threshold=threshold, alpha=cfg.alpha)

        topic_sim = similarity(topic, interest_tags, interest_tag_weights, cfg.interest_threshold)
        target_sim = similarity(target, interest_target, interest_target_weights, cfg.interest_threshold)
        tag_sim = similarity(tags, interest_tags, interest_tag_weights, cfg.interest_threshold)
        not_target_sim = similarity(target, other_target, other_target_weights, cfg.not_interest_threshold)
        not_tag_sim = similarity(tags, other_tags, other_tag_weights, cfg.not_interest_threshold)

        content_score = self.content_score(topic_sim, target_sim, tag_sim, not_target_sim, not_tag_sim)

        return ScoreBreakdown(
            topic=topic_sim,
            target=target_sim,
            tag=tag_sim,
            not_interest_target=not_target_sim,
            not_interest_tag=not_tag_sim,
            final=sigmoid(content_score * SCORE_PRE_SCALE, cfg.sigmoid_k),
        )

    def content_score(
        self,
        topic: float,
        target: float,
        tag: float,
        not_interest_target: float,
        not_interest_tag: float,
    ) -> float:
        """Weighted sum of interest similarities minus the disinterest penalty."""
        cfg = self.config
        return (
            cfg.topic_weight * topic
            + cfg.target_weight * target
            + cfg.tag_weight * tag
            - cfg.not_interest_weight * (not_interest_target + not_interest_tag)
        )

    def score_paper(self, paper: EmbeddedPaper, profile: PreferenceProfile) -> ScoredPaper:
        scores = self.score(paper.embedded, profile)
        logger.debug("Scored %s: %.4f", paper.paper.id, scores.final)
        return ScoredPaper(
            paper=paper.paper,
            facets=paper.facets,
            embedded=paper.embedded,
            scores=scores,
        )
