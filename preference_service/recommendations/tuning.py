"""
Tunable constants of the scorer and the feedback updater.

Both structures are immutable and validated on construction, so a scorer or
updater never runs with a NaN weight or an out-of-range threshold.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
import math


def _check_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value!r}")


def _check_threshold(name: str, value: float) -> None:
    _check_finite(name, value)
    if not -1.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [-1, 1], got {value}")


def _check_weight(name: str, value: float) -> None:
    _check_finite(name, value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class ScoringConfig:
    """Facet weights, similarity thresholds and sigmoid steepness."""
    topic_weight: float = 4.0
    target_weight: float = 2.0
    tag_weight: float = 3.0
    not_interest_weight: float = 2.0
    interest_threshold: float = 0.35
    not_interest_threshold: float = 0.6
    sigmoid_k: float = 0.5
    alpha: float = 0.6

    def __post_init__(self) -> None:
        for name in ("topic_weight", "target_weight", "tag_weight", "not_interest_weight"):
            _check_weight(name, getattr(self, name))
        _check_threshold("interest_threshold", self.interest_threshold)
        _check_threshold("not_interest_threshold", self.not_interest_threshold)
        _check_finite("sigmoid_k", self.sigmoid_k)
        if self.sigmoid_k <= 0:
            raise ValueError(f"sigmoid_k must be > 0, got {self.sigmoid_k}")
        _check_finite("alpha", self.alpha)
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"alpha must be within [0, 1], got {self.alpha}")


@dataclass(frozen=True)
class FeedbackConfig:
    """Reinforcement thresholds and multipliers of the profile updater.

    ``match_weight`` and ``related_weight`` multiply the weight of a
    reinforced term and must be at least 1; ``append_weight`` is the weight
    given to a newly appended term and may be any non-negative value. When
    ``square_related_multiplier`` is set, that running value is squared after
    every related hit of the incoming term; ``append_on_related`` appends
    terms even when they only reinforced a related existing term.
    """
    match_threshold: float = 0.8
    related_threshold: float = 0.6
    match_weight: float = 1.5
    related_weight: float = 1.2
    append_weight: float = 1.0
    square_related_multiplier: bool = False
    append_on_related: bool = False

    def __post_init__(self) -> None:
        _check_threshold("match_threshold", self.match_threshold)
        _check_threshold("related_threshold", self.related_threshold)
        if self.match_threshold <= self.related_threshold:
            raise ValueError(
                f"match_threshold ({self.match_threshold}) must be greater than "
                f"related_threshold ({self.related_threshold})"
            )
        for name in ("match_weight", "related_weight", "append_weight"):
            _check_weight(name, getattr(self, name))
        # reinforcement never shrinks a weight
        for name in ("match_weight", "related_weight"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")


def config_from_mapping(cls, values: dict):
    """Build a tuning dataclass from a dict, ignoring unknown keys."""
    known = {f.name for f in fields(cls)}
    return cls(**{key: value for key, value in values.items() if key in known})
