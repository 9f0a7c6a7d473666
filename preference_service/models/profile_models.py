"""
User preference profile models.

A profile holds two buckets, ``interest`` and ``notInterest``, each with a
weighted vocabulary of tags and target audiences. The JSON shape matches the
profile files written by :mod:`preference_service.profile_store`.
"""

import threading
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class WeightedTerm(BaseModel):
    """One vocabulary item of a profile bucket."""
    value: str = Field(description="Dedup key within its collection (case-sensitive)")
    weight: float = Field(default=1.0, ge=0.0, description="Relative importance, max 1.0 after normalization")
    embedding: Optional[List[float]] = Field(default=None, description="Embedding vector, recomputed on load")


class ProfileBucket(BaseModel):
    """Weighted tag and target vocabularies of one polarity."""
    tags: List[WeightedTerm] = Field(default_factory=list)
    target: List[WeightedTerm] = Field(default_factory=list)

    def terms(self) -> List[WeightedTerm]:
        return [*self.tags, *self.target]


class PreferenceProfile(BaseModel):
    """Interest and disinterest vocabularies of one user.

    The profile is owned by a single user session. Updates take ``lock`` so
    that two feedback events never interleave their read-modify-write.
    """
    model_config = ConfigDict(populate_by_name=True)

    interest: ProfileBucket = Field(default_factory=ProfileBucket)
    not_interest: ProfileBucket = Field(default_factory=ProfileBucket, alias="notInterest")

    _lock: Any = PrivateAttr(default_factory=threading.RLock)

    @classmethod
    def empty(cls) -> "PreferenceProfile":
        return cls()

    @property
    def lock(self):
        return self._lock

    def bucket(self, interested: bool) -> ProfileBucket:
        return self.interest if interested else self.not_interest

    def is_empty(self) -> bool:
        return not (self.interest.terms() or self.not_interest.terms())

    def without_embeddings(self) -> dict:
        """Persistable representation: values and weights only."""
        return self.model_dump(by_alias=True, exclude={
            "interest": {"tags": {"__all__": {"embedding"}}, "target": {"__all__": {"embedding"}}},
            "not_interest": {"tags": {"__all__": {"embedding"}}, "target": {"__all__": {"embedding"}}},
        })
