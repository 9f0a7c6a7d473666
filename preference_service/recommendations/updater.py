"""
Adaptive profile updater.

Incorporates one feedback event ("the user liked / disliked this paper") into
a preference profile: incoming facet values either reinforce a similar
existing term or are appended as new terms, then the bucket is renormalized
so its largest weight is 1.0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..models import EmbeddedFacets, EmbeddedValue, PreferenceProfile, WeightedTerm
from .similarity import similarity_list
from .tuning import FeedbackConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MergeStats:
    """What happened to the incoming values of one merge."""

    matched: List[str] = field(default_factory=list)
    related: List[str] = field(default_factory=list)
    appended: List[str] = field(default_factory=list)


def normalize_weights(terms: Sequence[WeightedTerm]) -> None:
    """Divide every weight by the bucket maximum, in place.

    Empty buckets and buckets whose maximum weight is not positive are left
    unchanged.
    """
    if not terms:
        return
    max_weight = max(term.weight for term in terms)
    if max_weight <= 0:
        return
    for term in terms:
        term.weight = term.weight / max_weight


class ProfileUpdater:
    """Merge-reinforce-or-append update of profile vocabularies."""

    def __init__(self, config: Optional[FeedbackConfig] = None):
        self.config = config or FeedbackConfig()

    def merge_terms(
        self,
        incoming: Sequence[EmbeddedValue],
        existing: Sequence[WeightedTerm],
        stats: Optional[MergeStats] = None,
    ) -> List[WeightedTerm]:
        """Return a new collection with ``incoming`` merged into ``existing``.

        ``existing`` is not modified. Incoming values are processed in order,
        so a value appended earlier can be reinforced by a later one. For each
        value the existing terms are scanned in order; the first term above
        the match threshold, or failing that above the related threshold,
        is reinforced and ends the scan.
        """
        cfg = self.config
        stats = stats if stats is not None else MergeStats()
        terms = [term.model_copy() for term in existing]

        for item in incoming:
            # Terms loaded without an embedding cannot be compared
            comparable = [term for term in terms if term.embedding is not None]
            hits = similarity_list(item.embedding, [term.embedding for term in comparable])
            append_weight = cfg.append_weight
            represented = False

            for hit in hits:
                term = comparable[hit.index]
                if hit.similarity > cfg.match_threshold:
                    term.weight *= cfg.match_weight
                    represented = True
                    stats.matched.append(item.value)
                    break
                if hit.similarity > cfg.related_threshold:
                    term.weight *= cfg.related_weight
                    if cfg.square_related_multiplier:
                        append_weight *= append_weight
                    represented = not cfg.append_on_related
                    stats.related.append(item.value)
                    break

            if not represented:
                terms.append(WeightedTerm(value=item.value, weight=append_weight, embedding=item.embedding))
                stats.appended.append(item.value)

        return terms

    def apply_feedback(
        self,
        profile: PreferenceProfile,
        facets: EmbeddedFacets,
        interested: bool,
    ) -> PreferenceProfile:
        """Fold one liked (``interested``) or disliked paper into ``profile``.

        The paper's tags update the bucket's tags and its targets the
        bucket's targets. Both collections are rebuilt on copies and swapped
        in together, so an error part way leaves the profile untouched.
        """
        with profile.lock:
            bucket = profile.bucket(interested)
            tag_stats = MergeStats()
            target_stats = MergeStats()

            tags = self.merge_terms(facets.tags, bucket.tags, tag_stats)
            target = self.merge_terms(facets.target, bucket.target, target_stats)
            normalize_weights(tags)
            normalize_weights(target)

            bucket.tags = tags
            bucket.target = target

        logger.info(
            "Updated %s profile: tags matched=%d related=%d appended=%d, "
            "targets matched=%d related=%d appended=%d",
            "interest" if interested else "notInterest",
            len(tag_stats.matched), len(tag_stats.related), len(tag_stats.appended),
            len(target_stats.matched), len(target_stats.related), len(target_stats.appended),
        )
        return profile
