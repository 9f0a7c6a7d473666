"""
JSON Schema definitions for validation.

This module contains the JSON schema definitions used for
validating LLM output and persisted profiles.
"""

PAPER_TYPES = ["empirical", "theoretical", "literature", "experimental", "simulation"]

PAPER_FACETS_SCHEMA = {
    "type": "object",
    "properties": {
        "tags": {"type": "array", "items": {"type": "string"}},
        "target": {"type": "array", "items": {"type": "string"}},
        "topic": {"type": "string"},
        "type": {"type": "string", "enum": PAPER_TYPES}
    },
    "required": ["tags", "target", "topic"]
}

_WEIGHTED_TERMS = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "value": {"type": "string"},
            "weight": {"type": "number", "minimum": 0}
        },
        "required": ["value"]
    }
}

PROFILE_SCHEMA = {
    "type": "object",
    "properties": {
        "interest": {
            "type": "object",
            "properties": {"tags": _WEIGHTED_TERMS, "target": _WEIGHTED_TERMS}
        },
        "notInterest": {
            "type": "object",
            "properties": {"tags": _WEIGHTED_TERMS, "target": _WEIGHTED_TERMS}
        }
    },
    "required": ["interest", "notInterest"]
}
