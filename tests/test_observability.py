"""Tests for observability module."""

import pytest
from httpx import AsyncClient
from prometheus_client import REGISTRY

from knowledge_agent.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_agent_query,
    track_llm_fallback,
    track_llm_request,
    track_retrieval_request,
    track_vectorstore_operation,
)


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsEndpoint:
    """Tests for /metrics endpoint."""

    @pytest.mark.asyncio
    async def test_metrics_endpoint_returns_prometheus_format(self, client: AsyncClient) -> None:
        """Metrics endpoint returns Prometheus format."""
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"# HELP" in response.content


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        assert isinstance(get_metrics(), bytes)

    def test_track_llm_request_success(self) -> None:
        """track_llm_request records tokens for a successful request."""
        labels = {"model": "obs-model", "type": "prompt"}
        before = _sample("llm_tokens_total", labels)

        track_llm_request(
            model="obs-model",
            duration=1.5,
            prompt_tokens=100,
            completion_tokens=50,
            success=True,
        )

        assert _sample("llm_tokens_total", labels) == before + 100

    def test_track_llm_request_failure(self) -> None:
        """Failed requests are counted without tokens."""
        labels = {"model": "obs-failing", "status": "error"}
        before = _sample("llm_requests_total", labels)

        track_llm_request(
            model="obs-failing",
            duration=0.5,
            prompt_tokens=0,
            completion_tokens=0,
            success=False,
        )

        assert _sample("llm_requests_total", labels) == before + 1
        assert _sample("llm_tokens_total", {"model": "obs-failing", "type": "prompt"}) == 0

    def test_track_llm_fallback(self) -> None:
        """Fallbacks are counted per model pair."""
        labels = {"primary_model": "big", "fallback_model": "small"}
        before = _sample("llm_fallbacks_total", labels)

        track_llm_fallback(primary_model="big", fallback_model="small")

        assert _sample("llm_fallbacks_total", labels) == before + 1

    def test_track_retrieval_request(self) -> None:
        """track_retrieval_request records passages and score."""
        before = _sample("retrieval_chunks_returned_count")

        track_retrieval_request(chunks_returned=5, top_score=0.95)

        assert _sample("retrieval_chunks_returned_count") == before + 1
        assert "retrieval_top_score" in get_metrics().decode()

    def test_track_agent_query(self) -> None:
        """Agent queries are counted by grounding outcome."""
        labels = {"agent_type": "technical", "grounding": "degraded"}
        before = _sample("agent_queries_total", labels)

        track_agent_query("technical", "degraded")

        assert _sample("agent_queries_total", labels) == before + 1


class TestTrackVectorstoreOperation:
    """Tests for the vector store timing context manager."""

    def test_records_success(self) -> None:
        labels = {"operation": "obs_search", "status": "success"}
        before = _sample("vectorstore_operation_duration_seconds_count", labels)

        with track_vectorstore_operation("obs_search"):
            pass

        assert _sample("vectorstore_operation_duration_seconds_count", labels) == before + 1

    def test_records_error_and_reraises(self) -> None:
        labels = {"operation": "obs_upsert", "status": "error"}
        before = _sample("vectorstore_operation_duration_seconds_count", labels)

        with pytest.raises(RuntimeError):
            with track_vectorstore_operation("obs_upsert"):
                raise RuntimeError("boom")

        assert _sample("vectorstore_operation_duration_seconds_count", labels) == before + 1


class TestMetricsMiddleware:
    """Tests for MetricsMiddleware."""

    @pytest.mark.asyncio
    async def test_middleware_records_request_metrics(self, client: AsyncClient) -> None:
        """Middleware records HTTP request metrics."""
        labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
        before = _sample("http_requests_total", labels)

        await client.get("/health")

        assert _sample("http_requests_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_middleware_normalizes_health_endpoints(self, client: AsyncClient) -> None:
        """All health probes share one endpoint label."""
        labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
        before = _sample("http_requests_total", labels)

        await client.get("/health/ready")
        await client.get("/health/live")

        assert _sample("http_requests_total", labels) == before + 2

    def test_normalize_collapses_ids(self) -> None:
        """Path parameters after the route group are dropped."""
        middleware = MetricsMiddleware(app=lambda scope, receive, send: None)

        assert middleware._normalize_endpoint("/api/chat/history/session_1_ab") == (
            "/api/chat/history"
        )
        assert middleware._normalize_endpoint("/metrics") == "/metrics"
