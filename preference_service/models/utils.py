"""
Utility functions for schema management and data conversion.

This module contains functions for parsing and validating LLM responses and
persisted profile documents.
"""

import json
import re
from typing import Any, Dict

from .paper_models import PaperFacets
from .profile_models import PreferenceProfile
from .schemas import PAPER_FACETS_SCHEMA, PROFILE_SCHEMA


def get_schema_version() -> str:
    """Get the current schema version for tracking changes."""
    return "1.0.0"


def validate_json_schema(data: Dict[str, Any], schema: Dict[str, Any]) -> bool:
    """Check that every required top-level field is present."""
    if not isinstance(data, dict):
        return False
    return all(field in data for field in schema.get("required", []))


def clean_json_response(response: str) -> str:
    """Clean up LLM response to extract JSON content."""
    response = response.strip()
    fenced_match = re.search(r"```(?:json|\w+)?\s*([\s\S]*?)\s*```", response, re.IGNORECASE)
    if fenced_match:
        response = fenced_match.group(1)
    return response.strip()


def parse_paper_facets(json_str: str) -> PaperFacets:
    """Parse extracted paper facets from an LLM JSON answer."""
    try:
        data = json.loads(clean_json_response(json_str))
        if not validate_json_schema(data, PAPER_FACETS_SCHEMA):
            raise ValueError("Invalid paper facets schema")
        # Models sometimes answer with an unknown study type; treat it as absent
        if data.get("type") not in PAPER_FACETS_SCHEMA["properties"]["type"]["enum"]:
            data["type"] = None
        return PaperFacets.model_validate(data)
    except Exception as e:
        raise ValueError(f"Failed to parse paper facets: {e}")


def parse_profile(data: Dict[str, Any]) -> PreferenceProfile:
    """Build a profile from its persisted JSON document."""
    if not validate_json_schema(data, PROFILE_SCHEMA):
        raise ValueError("Invalid profile schema")
    return PreferenceProfile.model_validate(data)
