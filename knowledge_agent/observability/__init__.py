"""Observability module for metrics and monitoring."""

from knowledge_agent.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_agent_query,
    track_llm_fallback,
    track_llm_request,
    track_retrieval_request,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_agent_query",
    "track_llm_fallback",
    "track_llm_request",
    "track_retrieval_request",
    "track_vectorstore_operation",
]
