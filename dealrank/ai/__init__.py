"""AI modules for semantic similarity."""

from .embeddings import (
    DimensionMismatchError,
    EmbeddingError,
    EmbeddingErrorKind,
    EmbeddingService,
    cosine_similarity,
    similarity_to_score,
)

__all__ = [
    "DimensionMismatchError",
    "EmbeddingError",
    "EmbeddingErrorKind",
    "EmbeddingService",
    "cosine_similarity",
    "similarity_to_score",
]
