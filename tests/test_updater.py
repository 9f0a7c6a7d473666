"""
Tests for the feedback-driven profile updater.
"""

import math
import threading
import time

import pytest

from preference_service.models import (
    EmbeddedFacets,
    EmbeddedValue,
    PreferenceProfile,
    ProfileBucket,
    WeightedTerm,
)
from preference_service.recommendations import (
    FeedbackConfig,
    MergeStats,
    ProfileUpdater,
    normalize_weights,
)
from preference_service.recommendations.similarity import DimensionMismatchError

# cos(COS_HALF, X) == 0.5
X = [1.0, 0.0]
Y = [0.0, 1.0]
COS_HALF = [0.5, math.sqrt(0.75)]


def _term(text, vector, weight=1.0):
    return WeightedTerm(value=text, weight=weight, embedding=vector)


def _value(text, vector):
    return EmbeddedValue(value=text, embedding=vector)


def _weights(terms):
    return {t.value: t.weight for t in terms}


class TestMergeTerms:
    """Reinforce-or-append merging of one collection."""

    def test_exact_match_reinforces(self):
        existing = [_term("crypto", X), _term("networks", Y)]
        stats = MergeStats()
        merged = ProfileUpdater().merge_terms([_value("cryptography", X)], existing, stats)

        assert _weights(merged) == {"crypto": pytest.approx(1.5), "networks": 1.0}
        assert stats.matched == ["cryptography"]
        assert stats.appended == []

    def test_related_hit_reinforces_without_append(self):
        existing = [_term("ml", X)]
        updater = ProfileUpdater(FeedbackConfig(match_threshold=0.8, related_threshold=0.4))
        stats = MergeStats()
        merged = updater.merge_terms([_value("deep learning", COS_HALF)], existing, stats)

        assert _weights(merged) == {"ml": pytest.approx(1.2)}
        assert stats.related == ["deep learning"]

    def test_first_qualifying_term_ends_scan(self):
        # "ml" is only related, "other" would be a match, but "ml" comes first
        existing = [_term("ml", X), _term("other", Y)]
        updater = ProfileUpdater(FeedbackConfig(match_threshold=0.8, related_threshold=0.4))
        merged = updater.merge_terms([_value("deep learning", COS_HALF)], existing)

        assert _weights(merged) == {"ml": pytest.approx(1.2), "other": 1.0}

    def test_unrelated_value_is_appended(self):
        existing = [_term("crypto", X)]
        stats = MergeStats()
        merged = ProfileUpdater().merge_terms([_value("biology", Y)], existing, stats)

        assert [t.value for t in merged] == ["crypto", "biology"]
        assert merged[1].weight == 1.0
        assert merged[1].embedding == Y
        assert stats.appended == ["biology"]

    def test_existing_collection_is_not_modified(self):
        existing = [_term("crypto", X)]
        ProfileUpdater().merge_terms([_value("crypto", X), _value("bio", Y)], existing)
        assert len(existing) == 1
        assert existing[0].weight == 1.0

    def test_later_values_can_reinforce_earlier_appends(self):
        merged = ProfileUpdater().merge_terms([_value("a", X), _value("b", X)], [])
        assert _weights(merged) == {"a": pytest.approx(1.5)}

    def test_terms_without_embedding_are_skipped(self):
        existing = [WeightedTerm(value="loaded", weight=0.7), _term("crypto", X)]
        merged = ProfileUpdater().merge_terms([_value("crypto", X)], existing)
        assert _weights(merged) == {"loaded": 0.7, "crypto": pytest.approx(1.5)}

    def test_append_on_related_with_squared_multiplier(self):
        config = FeedbackConfig(
            match_threshold=0.8,
            related_threshold=0.4,
            related_weight=1.0,
            append_weight=0.5,
            square_related_multiplier=True,
            append_on_related=True,
        )
        merged = ProfileUpdater(config).merge_terms([_value("deep learning", COS_HALF)], [_term("ml", X)])

        assert _weights(merged) == {"ml": 1.0, "deep learning": pytest.approx(0.25)}

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            ProfileUpdater().merge_terms([_value("crypto", [1.0, 0.0, 0.0])], [_term("crypto", X)])


class TestNormalizeWeights:
    """Scaling a collection so its largest weight is 1.0."""

    def test_max_becomes_one(self):
        terms = [_term("a", X, 3.0), _term("b", Y, 1.5)]
        normalize_weights(terms)
        assert [t.weight for t in terms] == [1.0, 0.5]

    def test_idempotent(self):
        terms = [_term("a", X, 0.4), _term("b", Y, 0.2)]
        normalize_weights(terms)
        once = [t.weight for t in terms]
        normalize_weights(terms)
        assert [t.weight for t in terms] == once

    def test_empty_and_zero_weight_collections_are_untouched(self):
        normalize_weights([])
        terms = [_term("a", X, 0.0)]
        normalize_weights(terms)
        assert terms[0].weight == 0.0


class TestApplyFeedback:
    """One like or dislike folded into a profile."""

    def test_like_updates_interest_bucket_and_normalizes(self):
        profile = PreferenceProfile(
            interest=ProfileBucket(tags=[_term("crypto", X), _term("networks", Y)])
        )
        facets = EmbeddedFacets(
            topic=_value("cryptography", X),
            tags=[_value("cryptography", X)],
            target=[_value("security engineer", Y)],
        )
        ProfileUpdater().apply_feedback(profile, facets, interested=True)

        assert _weights(profile.interest.tags) == {
            "crypto": pytest.approx(1.0),
            "networks": pytest.approx(2 / 3),
        }
        assert _weights(profile.interest.target) == {"security engineer": 1.0}
        assert profile.not_interest.terms() == []

    def test_dislike_updates_not_interest_bucket(self):
        profile = PreferenceProfile.empty()
        facets = EmbeddedFacets(tags=[_value("astronomy", X)], target=[_value("astronomer", Y)])
        ProfileUpdater().apply_feedback(profile, facets, interested=False)

        assert [t.value for t in profile.not_interest.tags] == ["astronomy"]
        assert [t.value for t in profile.not_interest.target] == ["astronomer"]
        assert profile.interest.terms() == []

    def test_weights_stay_within_unit_interval(self):
        profile = PreferenceProfile.empty()
        updater = ProfileUpdater()
        for vector in (X, X, Y, X, COS_HALF):
            updater.apply_feedback(profile, EmbeddedFacets(tags=[_value(str(vector), vector)]), interested=True)

        weights = [t.weight for t in profile.interest.tags]
        assert max(weights) == pytest.approx(1.0)
        assert all(0.0 <= w <= 1.0 for w in weights)

    def test_failed_update_leaves_profile_untouched(self):
        profile = PreferenceProfile(
            interest=ProfileBucket(
                tags=[_term("crypto", X)],
                target=[_term("engineer", Y)],
            )
        )
        facets = EmbeddedFacets(
            tags=[_value("biology", Y)],
            target=[_value("biologist", [0.0, 0.0, 1.0])],
        )
        with pytest.raises(DimensionMismatchError):
            ProfileUpdater().apply_feedback(profile, facets, interested=True)

        assert [t.value for t in profile.interest.tags] == ["crypto"]
        assert [t.value for t in profile.interest.target] == ["engineer"]


class TestConcurrentFeedback:
    """Feedback applied from several threads to one shared profile."""

    THREADS = 8
    DIMS = 2 * THREADS + 1

    class SlowUpdater(ProfileUpdater):
        """Widens the window between reading a bucket and swapping it."""

        def merge_terms(self, incoming, existing, stats=None):
            merged = super().merge_terms(incoming, existing, stats)
            time.sleep(0.002)
            return merged

    def _unit(self, index):
        vector = [0.0] * self.DIMS
        vector[index] = 1.0
        return vector

    def _profile(self):
        return PreferenceProfile(interest=ProfileBucket(tags=[_term("shared", self._unit(self.DIMS - 1))]))

    def _facets(self, i):
        return EmbeddedFacets(
            tags=[_value(f"tag-{i}", self._unit(i)), _value("shared", self._unit(self.DIMS - 1))],
            target=[_value(f"target-{i}", self._unit(self.THREADS + i))],
        )

    def test_no_updates_are_lost(self):
        updater = self.SlowUpdater()
        profile = self._profile()
        barrier = threading.Barrier(self.THREADS)
        errors = []

        def worker(i):
            try:
                barrier.wait()
                updater.apply_feedback(profile, self._facets(i), interested=True)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(self.THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        sequential = self._profile()
        for i in range(self.THREADS):
            ProfileUpdater().apply_feedback(sequential, self._facets(i), interested=True)

        assert errors == []
        assert len(profile.interest.tags) == len(sequential.interest.tags) == self.THREADS + 1
        assert _weights(profile.interest.target) == _weights(sequential.interest.target)
        # "shared" is reinforced by every feedback, so it ends on top
        assert _weights(profile.interest.tags)["shared"] == pytest.approx(1.0)
        assert sorted(_weights(profile.interest.tags).values()) == pytest.approx(
            sorted(_weights(sequential.interest.tags).values())
        )

    def test_readers_see_tags_and_targets_swapped_together(self):
        updater = self.SlowUpdater()
        profile = self._profile()
        done = threading.Event()
        snapshots = []

        def reader():
            while not done.is_set():
                with profile.lock:
                    snapshots.append((len(profile.interest.tags), len(profile.interest.target)))
                time.sleep(0.0005)

        watcher = threading.Thread(target=reader)
        watcher.start()
        writers = [
            threading.Thread(target=updater.apply_feedback, args=(profile, self._facets(i), True))
            for i in range(self.THREADS)
        ]
        for t in writers:
            t.start()
        for t in writers:
            t.join()
        done.set()
        watcher.join()

        assert snapshots
        assert all(tags == target + 1 for tags, target in snapshots)
        assert len(profile.interest.target) == self.THREADS
