"""
Tests for the facet scorer, the ranker and the tuning configs.
"""

import math

import pytest

from preference_service.models import (
    EmbeddedFacets,
    EmbeddedPaper,
    EmbeddedValue,
    Paper,
    PaperFacets,
    PreferenceProfile,
    ProfileBucket,
    ScoreBreakdown,
    ScoredPaper,
    WeightedTerm,
)
from preference_service.recommendations import (
    FacetScorer,
    FeedbackConfig,
    ScoringConfig,
    config_from_mapping,
    rank_papers,
    top_fraction,
)
from preference_service.recommendations.similarity import DimensionMismatchError


def _value(text, vector):
    return EmbeddedValue(value=text, embedding=vector)


def _term(text, vector, weight=1.0):
    return WeightedTerm(value=text, weight=weight, embedding=vector)


@pytest.fixture
def profile():
    return PreferenceProfile(
        interest=ProfileBucket(
            tags=[_term("cryptography", [1.0, 0.0, 0.0])],
            target=[_term("security engineer", [0.0, 1.0, 0.0])],
        ),
        not_interest=ProfileBucket(
            tags=[_term("astronomy", [0.0, 0.0, 1.0])],
            target=[_term("astronomer", [0.0, 0.0, 1.0])],
        ),
    )


class TestFacetScorer:
    """Per-facet similarities and the final score."""

    def test_empty_facets_score_is_neutral(self, profile):
        scores = FacetScorer().score(EmbeddedFacets(), profile)
        assert scores.topic == 0.0
        assert scores.tag == 0.0
        assert scores.not_interest_tag == 0.0
        assert math.isfinite(scores.final)
        assert scores.final == pytest.approx(0.5)

    def test_empty_profile_scores_neutral(self):
        facets = EmbeddedFacets(
            topic=_value("cryptography", [1.0, 0.0, 0.0]),
            tags=[_value("lattices", [1.0, 0.0, 0.0])],
        )
        scores = FacetScorer().score(facets, PreferenceProfile.empty())
        assert scores.final == pytest.approx(0.5)

    def test_matching_paper_scores_above_neutral(self, profile):
        facets = EmbeddedFacets(
            topic=_value("cryptography", [1.0, 0.0, 0.0]),
            tags=[_value("cryptography", [1.0, 0.0, 0.0])],
            target=[_value("security engineer", [0.0, 1.0, 0.0])],
        )
        scores = FacetScorer().score(facets, profile)

        assert scores.topic == pytest.approx(1.0)
        assert scores.tag == pytest.approx(1.0)
        assert scores.target == pytest.approx(1.0)
        # content = 4 + 2 + 3 = 9, squashed as sigmoid(9 * 0.5, k=0.5)
        expected = 1.0 / (1.0 + math.exp(-0.5 * 4.5))
        assert scores.final == pytest.approx(expected)

    def test_disliked_paper_scores_below_neutral(self, profile):
        facets = EmbeddedFacets(
            topic=_value("galaxies", [0.0, 0.0, 1.0]),
            tags=[_value("astronomy", [0.0, 0.0, 1.0])],
            target=[_value("astronomer", [0.0, 0.0, 1.0])],
        )
        scores = FacetScorer().score(facets, profile)
        assert scores.not_interest_tag == pytest.approx(1.0)
        assert scores.not_interest_target == pytest.approx(1.0)
        assert scores.final < 0.5

    def test_not_interest_weight_is_monotone(self, profile):
        facets = EmbeddedFacets(
            tags=[_value("astronomy", [0.1, 0.0, 1.0])],
            target=[_value("astronomer", [0.0, 0.1, 1.0])],
        )
        finals = [
            FacetScorer(ScoringConfig(not_interest_weight=w)).score(facets, profile).final
            for w in (0.0, 1.0, 2.0, 4.0)
        ]
        assert finals == sorted(finals, reverse=True)
        assert finals[0] > finals[-1]

    def test_terms_without_embedding_are_ignored(self, profile):
        profile.interest.tags.append(WeightedTerm(value="unresolved", weight=1.0))
        facets = EmbeddedFacets(tags=[_value("cryptography", [1.0, 0.0, 0.0])])
        assert FacetScorer().score(facets, profile).tag == pytest.approx(1.0)

    def test_dimension_mismatch_is_raised(self, profile):
        facets = EmbeddedFacets(tags=[_value("cryptography", [1.0, 0.0])])
        with pytest.raises(DimensionMismatchError):
            FacetScorer().score(facets, profile)

    def test_content_score_formula(self):
        scorer = FacetScorer()
        assert scorer.content_score(1.0, 1.0, 1.0, 0.0, 0.0) == pytest.approx(9.0)
        assert scorer.content_score(0.0, 0.0, 0.0, 1.0, 1.0) == pytest.approx(-4.0)

    def test_score_paper_keeps_paper(self, profile):
        paper = EmbeddedPaper(
            paper=Paper(id="2401.00001", title="Lattice crypto"),
            facets=PaperFacets(topic="cryptography", tags=["cryptography"]),
            embedded=EmbeddedFacets(topic=_value("cryptography", [1.0, 0.0, 0.0])),
        )
        scored = FacetScorer().score_paper(paper, profile)
        assert scored.paper.id == "2401.00001"
        assert scored.scores.topic == pytest.approx(1.0)

    def test_breakdown_serializes_with_camel_case_aliases(self):
        data = ScoreBreakdown(not_interest_tag=0.3).model_dump(by_alias=True)
        assert data["notInterestTag"] == 0.3
        assert "notInterestTarget" in data


def _scored(paper_id, final):
    return ScoredPaper(
        paper=Paper(id=paper_id, title=paper_id),
        facets=PaperFacets(topic="t"),
        embedded=EmbeddedFacets(),
        scores=ScoreBreakdown(final=final),
    )


class TestRanking:
    """Ordering of scored papers."""

    def test_sorted_by_final_descending(self):
        ranked = rank_papers([_scored("a", 0.2), _scored("b", 0.9), _scored("c", 0.5)])
        assert [p.paper.id for p in ranked] == ["b", "c", "a"]

    def test_ties_keep_input_order(self):
        ranked = rank_papers([_scored("a", 0.5), _scored("b", 0.7), _scored("c", 0.5), _scored("d", 0.5)])
        assert [p.paper.id for p in ranked] == ["b", "a", "c", "d"]

    def test_limit(self):
        ranked = rank_papers([_scored(str(i), i / 10) for i in range(5)], limit=2)
        assert [p.paper.id for p in ranked] == ["4", "3"]

    def test_empty(self):
        assert rank_papers([]) == []

    @pytest.mark.parametrize("size,expected", [(0, 0), (1, 1), (4, 1), (5, 2), (8, 2), (9, 3)])
    def test_top_fraction_rounds_up(self, size, expected):
        ranked = [_scored(str(i), 0.5) for i in range(size)]
        assert len(top_fraction(ranked, 0.25)) == expected


class TestTuningConfigs:
    """Validation of scorer and updater constants."""

    def test_scoring_defaults(self):
        cfg = ScoringConfig()
        assert (cfg.topic_weight, cfg.target_weight, cfg.tag_weight) == (4.0, 2.0, 3.0)
        assert cfg.not_interest_weight == 2.0
        assert cfg.sigmoid_k == 0.5

    @pytest.mark.parametrize("kwargs", [
        {"sigmoid_k": 0.0},
        {"sigmoid_k": float("nan")},
        {"tag_weight": -1.0},
        {"interest_threshold": 1.5},
        {"alpha": 1.2},
    ])
    def test_invalid_scoring_config(self, kwargs):
        with pytest.raises(ValueError):
            ScoringConfig(**kwargs)

    def test_match_threshold_must_exceed_related(self):
        with pytest.raises(ValueError):
            FeedbackConfig(match_threshold=0.5, related_threshold=0.6)

    @pytest.mark.parametrize("kwargs", [
        {"match_weight": 0.5},
        {"related_weight": 0.9},
        {"related_weight": -1.0},
    ])
    def test_reinforcement_multipliers_must_not_shrink(self, kwargs):
        with pytest.raises(ValueError):
            FeedbackConfig(**kwargs)

    def test_unit_multipliers_and_small_append_weight_are_allowed(self):
        cfg = FeedbackConfig(match_weight=1.0, related_weight=1.0, append_weight=0.5)
        assert (cfg.match_weight, cfg.related_weight, cfg.append_weight) == (1.0, 1.0, 0.5)

    def test_configs_are_frozen(self):
        cfg = FeedbackConfig()
        with pytest.raises(Exception):
            cfg.match_weight = 3.0

    def test_from_mapping_ignores_unknown_keys(self):
        cfg = config_from_mapping(ScoringConfig, {"sigmoid_k": 1.0, "colour": "blue"})
        assert cfg.sigmoid_k == 1.0
