"""
Models package for papers and user preference profiles.

This package contains the Pydantic models shared by the scoring engine,
the feedback updater and the persistence layer.
"""

from .paper_models import (
    Paper,
    PaperType,
    PaperFacets,
    EmbeddedValue,
    EmbeddedFacets,
    EmbeddedPaper,
    ScoreBreakdown,
    ScoredPaper,
)

from .profile_models import (
    WeightedTerm,
    ProfileBucket,
    PreferenceProfile,
)

from .schemas import (
    PAPER_FACETS_SCHEMA,
    PAPER_TYPES,
    PROFILE_SCHEMA,
)

from .utils import (
    validate_json_schema,
    clean_json_response,
    parse_paper_facets,
    parse_profile,
    get_schema_version,
)

__all__ = [
    # Paper models
    "Paper",
    "PaperType",
    "PaperFacets",
    "EmbeddedValue",
    "EmbeddedFacets",
    "EmbeddedPaper",
    "ScoreBreakdown",
    "ScoredPaper",

    # Profile models
    "WeightedTerm",
    "ProfileBucket",
    "PreferenceProfile",

    # Schemas
    "PAPER_FACETS_SCHEMA",
    "PAPER_TYPES",
    "PROFILE_SCHEMA",

    # Utility functions
    "validate_json_schema",
    "clean_json_response",
    "parse_paper_facets",
    "parse_profile",
    "get_schema_version",
]
