"""
Paper-related data models.

This module contains Pydantic models for candidate papers, the facets an LLM
extracts from them, their embedded counterparts and the score breakdown the
facet scorer attaches to each paper.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PaperType(str, Enum):
    """Kind of study a paper reports."""
    EMPIRICAL = "empirical"
    THEORETICAL = "theoretical"
    LITERATURE = "literature"
    EXPERIMENTAL = "experimental"
    SIMULATION = "simulation"


class Paper(BaseModel):
    """A candidate paper as fetched from a feed."""
    id: str = Field(description="Stable paper identifier (arXiv id or feed guid)")
    title: str = Field(description="Paper title")
    link: str = Field(default="", description="Link to the paper page")
    summary: str = Field(default="", description="Paper abstract")
    authors: List[str] = Field(default_factory=list, description="Author names")
    published: Optional[str] = Field(default=None, description="Publication date as given by the feed")
    translated_title: Optional[str] = Field(default=None, description="Title in the reader's language")
    translated_summary: Optional[str] = Field(default=None, description="Abstract in the reader's language")


class PaperFacets(BaseModel):
    """Metadata extracted from one paper before embedding."""
    topic: str = Field(description="The single most important topic of the paper")
    tags: List[str] = Field(default_factory=list, description="Words that categorize the paper")
    target: List[str] = Field(default_factory=list, description="Professions most affected by the paper")
    type: Optional[PaperType] = Field(default=None, description="Kind of study")


class EmbeddedValue(BaseModel):
    """A facet value paired with its embedding vector."""
    value: str
    embedding: List[float]


class EmbeddedFacets(BaseModel):
    """Facets of one paper with every resolvable value embedded.

    Values whose embedding could not be resolved are absent; ``topic`` is
    ``None`` in that case.
    """
    topic: Optional[EmbeddedValue] = None
    tags: List[EmbeddedValue] = Field(default_factory=list)
    target: List[EmbeddedValue] = Field(default_factory=list)


class EmbeddedPaper(BaseModel):
    """A paper with its raw and embedded facets."""
    paper: Paper
    facets: PaperFacets
    embedded: EmbeddedFacets


class ScoreBreakdown(BaseModel):
    """Per-facet similarities and the final relevance score of one paper."""
    model_config = ConfigDict(populate_by_name=True)

    topic: float = 0.0
    target: float = 0.0
    tag: float = 0.0
    not_interest_target: float = Field(default=0.0, alias="notInterestTarget")
    not_interest_tag: float = Field(default=0.0, alias="notInterestTag")
    final: float = 0.0


class ScoredPaper(BaseModel):
    """An embedded paper together with its score breakdown."""
    paper: Paper
    facets: PaperFacets
    embedded: EmbeddedFacets
    scores: ScoreBreakdown
