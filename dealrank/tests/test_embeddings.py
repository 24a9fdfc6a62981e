"""
Tests for the embedding service and similarity helpers.
"""
from types import SimpleNamespace

import httpx
import openai
import pytest

from dealrank.ai.embeddings import (
    DimensionMismatchError,
    EmbeddingErrorKind,
    EmbeddingService,
    classify_error,
    cosine_similarity,
    similarity_to_score,
)
from dealrank.config import EmbeddingConfig


REQUEST = httpx.Request("POST", "https://example.openai.azure.com/openai/deployments/x/embeddings")


def status_error(cls, status: int):
    return cls(f"status {status}", response=httpx.Response(status, request=REQUEST), body=None)


@pytest.fixture
def config() -> EmbeddingConfig:
    return EmbeddingConfig(
        endpoint="https://example.openai.azure.com",
        api_key="test-key",
        deployment="text-embedding-test",
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_service(config, sleeps, fake_embeddings):
    """Build a service around a fake embeddings endpoint."""
    def _make(vectors=None, failures=None, **overrides):
        embeddings = fake_embeddings(vectors=vectors, failures=failures)
        service = EmbeddingService(
            config.model_copy(update=overrides),
            client=SimpleNamespace(embeddings=embeddings),
            sleep=sleeps.append,
        )
        return service, embeddings
    return _make


class TestCosineSimilarity:
    """Test similarity math."""

    @pytest.mark.parametrize("vector", [[1.0, 2.0, 3.0], [-0.5, 0.25], [1e-3, 4.0, -7.0, 0.0]])
    def test_self_similarity_is_one(self, vector):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 3.0]) == pytest.approx(0.0)

    def test_zero_norm_returns_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_dimension_mismatch_raises(self):
        """Test mismatched lengths fail loudly."""
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    @pytest.mark.parametrize("similarity,expected", [
        (1.0, 100.0),
        (0.0, 50.0),
        (-1.0, 0.0),
        (0.5, 75.0),
        (1.0000001, 100.0),
    ])
    def test_similarity_to_score(self, similarity, expected):
        assert similarity_to_score(similarity) == pytest.approx(expected)


class TestErrorClassification:
    """Test transport error translation."""

    def test_rate_limit(self):
        kind = classify_error(status_error(openai.RateLimitError, 429))
        assert kind is EmbeddingErrorKind.RATE_LIMITED
        assert kind.retryable

    def test_server_error(self):
        kind = classify_error(status_error(openai.InternalServerError, 503))
        assert kind is EmbeddingErrorKind.SERVER_ERROR
        assert kind.retryable

    def test_network_error(self):
        kind = classify_error(openai.APIConnectionError(request=REQUEST))
        assert kind is EmbeddingErrorKind.NETWORK
        assert kind.retryable

    def test_client_error(self):
        kind = classify_error(status_error(openai.BadRequestError, 400))
        assert kind is EmbeddingErrorKind.CLIENT_ERROR
        assert not kind.retryable


class TestAvailability:
    """Test configuration-driven availability."""

    def test_unconfigured_is_unavailable(self):
        service = EmbeddingService(EmbeddingConfig(endpoint="", api_key=""))

        assert not service.is_available()
        assert service.embed("anything") is None
        assert service.embed_batch(["a", "b"]) == [None, None]

    def test_configured_builds_client(self, config):
        service = EmbeddingService(config)
        assert service.is_available()

    def test_sdk_client_does_not_retry(self, config):
        """Test the SDK's own retries are off so only embed() retries."""
        service = EmbeddingService(config)
        assert service.client.max_retries == 0

    def test_request_count_against_failing_server(self, config, sleeps, monkeypatch):
        """Test one embed() against an always-failing server sends 1 + 3 requests."""
        requests_seen = []

        def handler(request):
            requests_seen.append(request)
            return httpx.Response(500, json={"error": {"message": "server error"}})

        def client_factory(**kwargs):
            return openai.AzureOpenAI(
                http_client=httpx.Client(transport=httpx.MockTransport(handler)),
                **kwargs,
            )

        monkeypatch.setattr("dealrank.ai.embeddings.AzureOpenAI", client_factory)
        service = EmbeddingService(config, sleep=sleeps.append)

        assert service.embed("query") is None
        assert len(requests_seen) == 4
        assert sleeps == [1, 2, 4]


class TestEmbed:
    """Test single-text embedding."""

    def test_embed_returns_vector(self, make_service):
        service, embeddings = make_service(vectors={"red shoes": [0.1, 0.2]})

        assert service.embed("  red \n shoes ") == [0.1, 0.2]
        assert embeddings.calls == [["red shoes"]]

    def test_empty_text_skips_remote_call(self, make_service):
        service, embeddings = make_service()

        assert service.embed(" \t\n ") is None
        assert embeddings.calls == []

    def test_text_truncated(self, make_service):
        service, embeddings = make_service(max_text_length=10)

        service.embed("x" * 50)
        assert embeddings.calls == [["x" * 10]]

    def test_retries_transient_failures(self, make_service, sleeps):
        """Test two rate-limit errors are retried with 1s then 2s backoff."""
        service, embeddings = make_service(
            vectors={"query": [1.0]},
            failures=[
                status_error(openai.RateLimitError, 429),
                openai.APIConnectionError(request=REQUEST),
                None,
            ],
        )

        assert service.embed("query") == [1.0]
        assert len(embeddings.calls) == 3
        assert sleeps == [1, 2]

    def test_gives_up_after_three_retries(self, make_service, sleeps):
        service, embeddings = make_service(
            failures=[status_error(openai.InternalServerError, 500)] * 5,
        )

        assert service.embed("query") is None
        assert len(embeddings.calls) == 4
        assert sleeps == [1, 2, 4]

    def test_non_retryable_fails_immediately(self, make_service, sleeps):
        service, embeddings = make_service(
            failures=[status_error(openai.BadRequestError, 400)],
        )

        assert service.embed("query") is None
        assert len(embeddings.calls) == 1
        assert sleeps == []


class TestEmbedBatch:
    """Test batch embedding."""

    def test_preserves_length_and_order(self, make_service, sleeps):
        texts = [f"item {i}" for i in range(40)]
        service, embeddings = make_service(vectors={t: [float(i)] for i, t in enumerate(texts)})

        results = service.embed_batch(texts)

        assert results == [[float(i)] for i in range(40)]
        assert [len(call) for call in embeddings.calls] == [16, 16, 8]
        assert sleeps == [0.1, 0.1]

    def test_failed_group_degrades_only_that_group(self, make_service):
        """Test a network error on the second group leaves the others intact."""
        texts = [f"item {i}" for i in range(40)]
        service, _ = make_service(
            failures=[None, openai.APIConnectionError(request=REQUEST), None],
        )

        results = service.embed_batch(texts)

        assert len(results) == 40
        assert all(r is not None for r in results[:16])
        assert all(r is None for r in results[16:32])
        assert all(r is not None for r in results[32:])

    def test_empty_texts_keep_their_position(self, make_service):
        service, embeddings = make_service(vectors={"a": [1.0], "b": [2.0]})

        results = service.embed_batch(["a", "   ", "b", ""])

        assert results == [[1.0], None, [2.0], None]
        assert embeddings.calls == [["a", "b"]]

    def test_all_empty_group_makes_no_call(self, make_service):
        service, embeddings = make_service()

        assert service.embed_batch(["", " "]) == [None, None]
        assert embeddings.calls == []

    def test_short_response_marks_group_unavailable(self, make_service):
        """Test a response with fewer embeddings than inputs is treated as a failure."""
        service, embeddings = make_service()
        embeddings.create = lambda model, input: SimpleNamespace(
            data=[SimpleNamespace(index=0, embedding=[1.0])]
        )

        assert service.embed_batch(["a", "b"]) == [None, None]

    def test_empty_input(self, make_service):
        service, embeddings = make_service()

        assert service.embed_batch([]) == []
        assert embeddings.calls == []
