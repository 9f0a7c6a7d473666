"""
Preference Profile Storage

This module saves and loads user preference profiles as JSON files. Only term
values and weights are stored; embeddings are recomputed after loading.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from .models import PreferenceProfile, parse_profile

_LOG = logging.getLogger(__name__)


def profile_path(user_id: str, user_data_dir: Path) -> Path:
    """Location of the profile file of ``user_id``."""
    return Path(user_data_dir) / f"{user_id}.profile.json"


def save_profile(profile: PreferenceProfile, path: Path) -> Path:
    """Save a profile without its embeddings.

    Args:
        profile: The profile to persist
        path: Target JSON file; parent directories are created

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with profile.lock:
        data = profile.without_embeddings()
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    _LOG.info(
        "Saved profile to %s (%d interest, %d notInterest terms)",
        path, len(profile.interest.terms()), len(profile.not_interest.terms()),
    )
    return path


def load_profile(path: Path) -> Optional[PreferenceProfile]:
    """Load a profile saved by :func:`save_profile`.

    Returns:
        The profile, or None if the file does not exist

    Raises:
        ValueError: If the file is not a valid profile document
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return parse_profile(data)
    except Exception as e:
        raise ValueError(f"Failed to load profile from {path}: {e}")
