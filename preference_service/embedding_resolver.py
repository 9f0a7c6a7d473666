"""
Embedding resolver.

Maps text values to embedding vectors in fixed-size batches. The result may
be incomplete: values whose batch failed, or whose vector has an unexpected
dimension, are left out and logged rather than raised.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Protocol, Sequence

from .models import EmbeddedValue

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 100


class EmbeddingBackend(Protocol):
    """The part of LangChain's ``Embeddings`` interface the resolver uses."""

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        ...


def dedupe(values: Iterable[str]) -> List[str]:
    """Unique non-empty values in first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


class EmbeddingResolver:
    """Resolve text values to vectors with a LangChain embedding backend."""

    def __init__(
        self,
        backend: EmbeddingBackend,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_workers: int = 4,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.backend = backend
        self.chunk_size = chunk_size
        self.max_workers = max(1, max_workers)

    def _embed_chunk(self, chunk: List[str]) -> List[Optional[List[float]]]:
        try:
            vectors = self.backend.embed_documents(chunk)
        except Exception as e:
            logger.warning("Embedding request for %d values failed: %s", len(chunk), e)
            return [None] * len(chunk)

        if len(vectors) != len(chunk):
            logger.warning(
                "Embedding provider returned %d vectors for %d values; dropping chunk",
                len(vectors), len(chunk),
            )
            return [None] * len(chunk)
        return [list(v) for v in vectors]

    def resolve(self, values: Sequence[str]) -> List[EmbeddedValue]:
        """Embed ``values``, deduplicated, keeping first-seen order.

        Returns:
            One ``EmbeddedValue`` per resolvable unique value
        """
        unique = dedupe(values)
        if not unique:
            return []

        chunks = [unique[i:i + self.chunk_size] for i in range(0, len(unique), self.chunk_size)]
        logger.debug("Embedding %d values in %d chunk(s)", len(unique), len(chunks))

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(chunks))) as executor:
            results = list(executor.map(self._embed_chunk, chunks))

        resolved: List[EmbeddedValue] = []
        dimension: Optional[int] = None
        missing: List[str] = []
        for chunk, vectors in zip(chunks, results):
            for value, vector in zip(chunk, vectors):
                if vector is None:
                    missing.append(value)
                    continue
                if dimension is None:
                    dimension = len(vector)
                elif len(vector) != dimension:
                    logger.warning(
                        "Dropping embedding for %r: dimension %d, expected %d",
                        value, len(vector), dimension,
                    )
                    missing.append(value)
                    continue
                resolved.append(EmbeddedValue(value=value, embedding=vector))

        if missing:
            logger.warning("Could not embed %d of %d values", len(missing), len(unique))
        return resolved

    def resolve_map(self, values: Sequence[str]) -> dict:
        """Like :meth:`resolve` but keyed by value."""
        return {item.value: item.embedding for item in self.resolve(values)}
