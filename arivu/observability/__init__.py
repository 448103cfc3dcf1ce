"""Observability: LangSmith tracing (optional, env-controlled)."""

from arivu.observability.langsmith import TRACING_ENABLED, flush, traceable

__all__ = ["TRACING_ENABLED", "flush", "traceable"]
