"""
Paper Metadata Extractor Module

Asks an LLM for the topic, tags, affected professions and study type of a
paper. Extraction failures are logged and reported as ``None``; callers drop
such papers from the batch.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate
from tqdm import tqdm

from .llm_utils import LLMProvider, extract_json_from_response
from .models import Paper, PaperFacets, PreferenceProfile, WeightedTerm, parse_paper_facets

logger = logging.getLogger(__name__)

PROMPT_PATH = Path(__file__).parent / "prompts" / "paper_metadata.json.md"

# Profile values shown to the model per collection
MAX_HINTS = 10


def _sample_values(terms: Sequence[WeightedTerm], rng: random.Random, limit: int = MAX_HINTS) -> List[str]:
    values = [term.value.lower().strip() for term in terms]
    if len(values) > limit:
        values = rng.sample(values, limit)
    return values


def build_profile_hints(profile: Optional[PreferenceProfile], rng: Optional[random.Random] = None) -> str:
    """Prompt section listing a random sample of the user's vocabulary.

    Returns an empty string for a missing or empty profile.
    """
    if profile is None or profile.is_empty():
        return ""
    rng = rng or random.Random()
    return (
        "However, please see the following example of a user's tags and be aware of "
        "the relative nature of the output to those tags.\n\n"
        "## User's tags\n"
        f"- InterestedTarget: {', '.join(_sample_values(profile.interest.target, rng))}\n"
        f"- InterestedTags: {', '.join(_sample_values(profile.interest.tags, rng))}\n"
        f"- notInterestedTarget: {', '.join(_sample_values(profile.not_interest.target, rng))}\n"
        f"- notInterestedTags: {', '.join(_sample_values(profile.not_interest.tags, rng))}\n"
    )


class PaperMetadataExtractor:
    """Extract facets from paper titles and abstracts with an LLM."""

    def __init__(
        self,
        llm: LLMProvider,
        max_workers: int = 4,
        rng: Optional[random.Random] = None,
        prompt_path: Path = PROMPT_PATH,
    ):
        self.llm = llm
        self.max_workers = max(1, max_workers)
        self.rng = rng or random.Random()
        self.template = PromptTemplate.from_file(prompt_path, encoding="utf-8")

    def build_prompt(self, paper: Paper, profile: Optional[PreferenceProfile] = None) -> str:
        return self.template.format(
            title=paper.title,
            summary=paper.summary.replace("\n", " "),
            profile_hints=build_profile_hints(profile, self.rng),
        )

    def extract(self, paper: Paper, profile: Optional[PreferenceProfile] = None) -> Optional[PaperFacets]:
        """Facets of ``paper``, or ``None`` when the LLM call or parsing fails."""
        try:
            resp = self.llm.invoke([HumanMessage(content=self.build_prompt(paper, profile))])
            raw = extract_json_from_response(resp.content or "", self.llm.provider)
            return parse_paper_facets(raw)
        except Exception as e:
            logger.warning("Metadata extraction failed for %s: %s", paper.id, e)
            return None

    def extract_many(
        self,
        papers: Sequence[Paper],
        profile: Optional[PreferenceProfile] = None,
    ) -> List[Tuple[Paper, PaperFacets]]:
        """Extract facets for every paper, keeping only successes in input order."""
        if not papers:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(
                tqdm(
                    executor.map(lambda p: self.extract(p, profile), papers),
                    total=len(papers),
                    desc="Extracting metadata",
                )
            )

        extracted = [(paper, facets) for paper, facets in zip(papers, results) if facets is not None]
        dropped = len(papers) - len(extracted)
        if dropped:
            logger.warning("Excluded %d of %d papers without metadata", dropped, len(papers))
        logger.info("Extracted metadata for %d papers", len(extracted))
        return extracted
