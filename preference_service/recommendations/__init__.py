"""
Preference-weighted paper ranking and profile adaptation.

Provides the similarity primitives, the facet scorer, ranking and the
feedback updater, plus an engine wiring them to the LLM and embedding
adapters without tying them to any CLI or storage.
"""

from .similarity import (
    NO_MATCH,
    DimensionMismatchError,
    SimilarityHit,
    average_similarity_many,
    combined_similarity,
    cosine_similarity,
    max_similarity,
    max_similarity_many,
    sigmoid,
    similarity_list,
)
from .tuning import FeedbackConfig, ScoringConfig, config_from_mapping
from .scorer import FacetScorer
from .ranker import rank_papers, top_fraction
from .updater import MergeStats, ProfileUpdater, normalize_weights
from .engine import BatchReport, PreferenceEngine, build_default_engine

__all__ = [
    "NO_MATCH",
    "DimensionMismatchError",
    "SimilarityHit",
    "average_similarity_many",
    "combined_similarity",
    "cosine_similarity",
    "max_similarity",
    "max_similarity_many",
    "sigmoid",
    "similarity_list",
    "FeedbackConfig",
    "ScoringConfig",
    "config_from_mapping",
    "FacetScorer",
    "rank_papers",
    "top_fraction",
    "MergeStats",
    "ProfileUpdater",
    "normalize_weights",
    "BatchReport",
    "PreferenceEngine",
    "build_default_engine",
]
