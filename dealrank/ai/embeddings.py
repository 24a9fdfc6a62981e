"""
Azure OpenAI embedding client with retry, batching and cosine similarity.
"""
import logging
import re
import time
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import numpy as np
import openai
from openai import AzureOpenAI
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import EmbeddingConfig


logger = logging.getLogger(__name__)

Vector = list[float]


class EmbeddingErrorKind(str, Enum):
    """Closed set of embedding failure kinds, decided at the transport boundary."""
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    CLIENT_ERROR = "client_error"
    INVALID_RESPONSE = "invalid_response"

    @property
    def retryable(self) -> bool:
        return self in (
            EmbeddingErrorKind.RATE_LIMITED,
            EmbeddingErrorKind.SERVER_ERROR,
            EmbeddingErrorKind.NETWORK,
        )


class EmbeddingError(Exception):
    """An embeddings call failed."""

    def __init__(self, kind: EmbeddingErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


class DimensionMismatchError(ValueError):
    """Two embeddings of different length were compared."""


def classify_error(error: Exception) -> EmbeddingErrorKind:
    """Map an OpenAI SDK exception to an EmbeddingErrorKind."""
    if isinstance(error, openai.RateLimitError):
        return EmbeddingErrorKind.RATE_LIMITED
    if isinstance(error, openai.APIStatusError):
        if error.status_code >= 500:
            return EmbeddingErrorKind.SERVER_ERROR
        return EmbeddingErrorKind.CLIENT_ERROR
    if isinstance(error, openai.APIConnectionError):
        return EmbeddingErrorKind.NETWORK
    return EmbeddingErrorKind.CLIENT_ERROR


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, EmbeddingError) and error.kind.retryable


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Embeddings must have the same dimension ({len(a)} != {len(b)})"
        )

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(va, vb) / (norm_a * norm_b))


def similarity_to_score(similarity: float) -> float:
    """Rescale a [-1, 1] similarity to a 0-100 score."""
    return max(0.0, min(100.0, (similarity + 1) * 50))


class EmbeddingService:
    """
    Text embedding client for an Azure OpenAI deployment.

    Availability is decided once, at construction. Every failure after
    that degrades to None for the affected text rather than raising.
    """

    def __init__(
        self,
        config: EmbeddingConfig,
        client: Optional[Any] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.deployment = config.deployment
        self._sleep = sleep

        if client is not None:
            self.client = client
        elif not config.is_configured:
            logger.warning("Azure OpenAI endpoint or key not configured. Semantic ranking disabled.")
            self.client = None
        else:
            try:
                self.client = AzureOpenAI(
                    api_key=config.api_key,
                    azure_endpoint=config.endpoint,
                    api_version=config.api_version,
                    # Retries are driven by embed() only
                    max_retries=0,
                )
                logger.info(f"Azure OpenAI embeddings initialized for deployment {self.deployment}")
            except openai.OpenAIError as e:
                logger.error(f"Failed to initialize Azure OpenAI client: {e}")
                self.client = None

    def is_available(self) -> bool:
        """Check if the embedding client is properly configured."""
        return self.client is not None

    def preprocess(self, text: str) -> str:
        """Collapse whitespace, trim and truncate text for submission."""
        cleaned = re.sub(r"\s+", " ", text or "").strip()
        return cleaned[: self.config.max_text_length]

    def _request(self, inputs: list[str]) -> list[Vector]:
        """Make one embeddings call, translating SDK errors to EmbeddingError."""
        try:
            response = self.client.embeddings.create(model=self.deployment, input=inputs)
        except openai.OpenAIError as e:
            raise EmbeddingError(classify_error(e), str(e)) from e

        data = getattr(response, "data", None) or []
        if len(data) != len(inputs):
            raise EmbeddingError(
                EmbeddingErrorKind.INVALID_RESPONSE,
                f"Expected {len(inputs)} embeddings, got {len(data)}",
            )
        return [list(item.embedding) for item in data]

    def embed(self, text: str) -> Optional[Vector]:
        """
        Embed a single text.

        Transient failures are retried with exponential backoff
        (1s, 2s, 4s, ...).

        Returns:
            The embedding, or None if unavailable
        """
        if not self.is_available():
            logger.warning("Embedding service unavailable. Skipping embedding generation.")
            return None

        cleaned = self.preprocess(text)
        if not cleaned:
            logger.warning("Empty text provided for embedding")
            return None

        retryer = Retrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=wait_exponential(multiplier=1, exp_base=2),
            retry=retry_if_exception(_is_retryable),
            before_sleep=lambda retry_state: logger.warning(
                f"Retrying embedding generation (attempt {retry_state.attempt_number}/"
                f"{self.config.max_retries}): {retry_state.outcome.exception()}"
            ),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            return retryer(self._request, [cleaned])[0]
        except EmbeddingError as e:
            logger.error(f"Embedding generation failed ({e.kind.value}): {e}")
            return None

    def embed_batch(self, texts: list[str]) -> list[Optional[Vector]]:
        """
        Embed many texts, one group of `batch_size` per call.

        The result always has one entry per input text, in input order.
        Empty texts and texts in a failed group get None.
        """
        if not self.is_available():
            logger.warning("Embedding service unavailable. Skipping batch embedding generation.")
            return [None] * len(texts)

        size = self.config.batch_size
        results: list[Optional[Vector]] = [None] * len(texts)

        for start in range(0, len(texts), size):
            group = [self.preprocess(text) for text in texts[start:start + size]]
            positions = [start + offset for offset, text in enumerate(group) if text]

            if positions:
                try:
                    vectors = self._request([text for text in group if text])
                    for position, vector in zip(positions, vectors):
                        results[position] = vector
                except EmbeddingError as e:
                    logger.error(
                        f"Batch embedding failed for items {start}-{start + len(group) - 1} "
                        f"({e.kind.value}): {e}"
                    )

            # Rate limiting: small delay between groups
            if start + size < len(texts):
                self._sleep(self.config.batch_delay_seconds)

        logger.info(
            f"Embedded {sum(1 for r in results if r is not None)}/{len(texts)} texts"
        )
        return results
