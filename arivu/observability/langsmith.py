"""Optional LangSmith tracing for resolver and federated search calls.

Enabled by LANGSMITH_TRACING=true with the ``tracing`` extra installed.
Otherwise ``traceable`` hands the function back unchanged and ``flush``
does nothing.
"""

from __future__ import annotations

import atexit
import os
from collections.abc import Callable
from typing import Any

TRACING_ENABLED = os.getenv("LANGSMITH_TRACING", "").strip().lower() == "true"
PROJECT = os.getenv("LANGSMITH_PROJECT", "arivu").strip() or "arivu"

Decorator = Callable[[Callable[..., Any]], Callable[..., Any]]


def _passthrough(name: str | None = None, run_type: str = "chain", **kwargs: Any) -> Decorator:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        return fn

    return decorator


def _noop_flush() -> None:
    pass


traceable = _passthrough
flush = _noop_flush

if TRACING_ENABLED:
    from langsmith import Client
    from langsmith import traceable as _ls_traceable

    _client: Client | None = None

    def _get_client() -> Client:
        global _client
        if _client is None:
            _client = Client()
        return _client

    def traceable(  # type: ignore[misc]
        name: str | None = None,
        run_type: str = "chain",
        **kwargs: Any,
    ) -> Decorator:
        kwargs.setdefault("project_name", PROJECT)
        return _ls_traceable(  # type: ignore[call-overload]
            name=name,
            run_type=run_type,
            client=_get_client(),
            **kwargs,
        )

    def flush() -> None:  # type: ignore[misc]
        if _client is not None:
            _client.flush()

    atexit.register(flush)
