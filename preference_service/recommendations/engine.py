"""
Preference-weighted recommendation engine.

Wires the collaborators together: metadata extraction, embedding resolution,
facet scoring and ranking. The engine holds no profile state; callers pass
the profile they own into every call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..embedding_resolver import EmbeddingResolver
from ..llm_utils import EmbeddingProvider, LLMProvider
from ..metadata_extractor import PaperMetadataExtractor
from ..models import (
    EmbeddedFacets,
    EmbeddedPaper,
    EmbeddedValue,
    Paper,
    PaperFacets,
    PreferenceProfile,
    ProfileBucket,
    ScoredPaper,
    WeightedTerm,
)
from .ranker import rank_papers
from .scorer import FacetScorer
from .similarity import DimensionMismatchError
from .tuning import ScoringConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Core data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class BatchReport:
    """Counts of what a scoring pass kept and dropped."""

    candidates: int = 0
    extracted: int = 0
    scored: int = 0
    dimension_errors: int = 0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PreferenceEngine:
    """Scores and ranks papers for a preference profile."""

    def __init__(
        self,
        resolver: EmbeddingResolver,
        extractor: Optional[PaperMetadataExtractor] = None,
        scorer: Optional[FacetScorer] = None,
        max_workers: int = 4,
    ):
        self.resolver = resolver
        self.extractor = extractor
        self.scorer = scorer or FacetScorer()
        self.max_workers = max(1, max_workers)
        self.last_report = BatchReport()

    def extract(
        self,
        papers: Sequence[Paper],
        profile: Optional[PreferenceProfile] = None,
    ) -> List[Tuple[Paper, PaperFacets]]:
        if self.extractor is None:
            raise ValueError("A metadata extractor is required to score raw papers.")
        return self.extractor.extract_many(papers, profile)

    def embed_papers(self, metadata: Sequence[Tuple[Paper, PaperFacets]]) -> List[EmbeddedPaper]:
        """Embed the facets of a batch with a single resolver call.

        Values the resolver leaves out are dropped from their facet.
        """
        values: List[str] = []
        for _, facets in metadata:
            values.append(facets.topic)
            values.extend(facets.tags)
            values.extend(facets.target)
        vectors = self.resolver.resolve_map(values)

        def lookup(items: Sequence[str]) -> List[EmbeddedValue]:
            return [EmbeddedValue(value=v, embedding=vectors[v]) for v in items if v in vectors]

        embedded: List[EmbeddedPaper] = []
        for paper, facets in metadata:
            topic = None
            if facets.topic in vectors:
                topic = EmbeddedValue(value=facets.topic, embedding=vectors[facets.topic])
            embedded.append(EmbeddedPaper(
                paper=paper,
                facets=facets,
                embedded=EmbeddedFacets(topic=topic, tags=lookup(facets.tags), target=lookup(facets.target)),
            ))

        logger.debug("Embedded facets for %d papers", len(embedded))
        return embedded

    def embed_profile(self, profile: PreferenceProfile) -> PreferenceProfile:
        """Return a copy of ``profile`` with every term embedded.

        Terms that already carry an embedding keep it. Terms that cannot be
        resolved stay in the copy with ``embedding=None``: scoring and merging
        skip them, and saving the profile keeps them for a later retry.
        """
        with profile.lock:
            buckets = {
                "interest": profile.interest.model_copy(deep=True),
                "not_interest": profile.not_interest.model_copy(deep=True),
            }

        pending = [t.value for b in buckets.values() for t in b.terms() if t.embedding is None]
        vectors = self.resolver.resolve_map(pending) if pending else {}

        def resolve(terms: List[WeightedTerm]) -> List[WeightedTerm]:
            for term in terms:
                if term.embedding is not None:
                    continue
                if term.value in vectors:
                    term.embedding = vectors[term.value]
                else:
                    logger.warning("Keeping profile term without embedding: %r", term.value)
            return terms

        return PreferenceProfile(
            interest=ProfileBucket(
                tags=resolve(buckets["interest"].tags),
                target=resolve(buckets["interest"].target),
            ),
            not_interest=ProfileBucket(
                tags=resolve(buckets["not_interest"].tags),
                target=resolve(buckets["not_interest"].target),
            ),
        )

    def _score_one(self, paper: EmbeddedPaper, profile: PreferenceProfile) -> Optional[ScoredPaper]:
        try:
            return self.scorer.score_paper(paper, profile)
        except DimensionMismatchError as e:
            logger.warning("Excluding %s from ranking: %s", paper.paper.id, e)
            return None

    def score_embedded(self, profile: PreferenceProfile, papers: Sequence[EmbeddedPaper]) -> List[ScoredPaper]:
        """Score already embedded papers against an embedded profile.

        Papers are scored concurrently against the same snapshot; a paper
        whose vectors do not match the profile's dimension is left out.
        ``last_report`` describes this call only.
        """
        self.last_report = BatchReport(candidates=len(papers), extracted=len(papers))
        if not papers:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(lambda p: self._score_one(p, profile), papers))

        scored = [result for result in results if result is not None]
        self.last_report.scored = len(scored)
        self.last_report.dimension_errors = len(papers) - len(scored)
        return scored

    def score_papers(self, profile: PreferenceProfile, papers: Sequence[Paper]) -> List[ScoredPaper]:
        """Extract, embed and score raw papers."""
        metadata = self.extract(papers, profile)
        embedded_papers = self.embed_papers(metadata)
        embedded_profile = self.embed_profile(profile)
        scored = self.score_embedded(embedded_profile, embedded_papers)
        self.last_report.candidates = len(papers)

        logger.info(
            "Scored %d of %d papers (%d without metadata, %d dimension errors)",
            len(scored), len(papers), len(papers) - len(metadata), self.last_report.dimension_errors,
        )
        return scored

    def recommend(
        self,
        profile: PreferenceProfile,
        papers: Sequence[Paper],
        limit: Optional[int] = None,
    ) -> List[ScoredPaper]:
        return rank_papers(self.score_papers(profile, papers), limit=limit)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def build_default_engine(
    llm: LLMProvider,
    embeddings: EmbeddingProvider,
    scoring_config: Optional[ScoringConfig] = None,
    chunk_size: int = 100,
    max_workers: int = 4,
) -> PreferenceEngine:
    """Factory for an engine backed by LangChain LLM and embedding providers."""
    return PreferenceEngine(
        resolver=EmbeddingResolver(embeddings.get_embeddings(), chunk_size=chunk_size, max_workers=max_workers),
        extractor=PaperMetadataExtractor(llm, max_workers=max_workers),
        scorer=FacetScorer(scoring_config),
        max_workers=max_workers,
    )
