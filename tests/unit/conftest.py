import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from arivu.orchestrators.search.dispatcher import AdapterDispatcher
from arivu.orchestrators.search.interface import CallableAdapter
from arivu.orchestrators.search.orchestrator import FederatedSearchEngine
from arivu.orchestrators.search.profiles import ProfileStore
from arivu.orchestrators.search.registry import AdapterRegistry


def fake_adapter(
    name: str,
    payload: Any = None,
    *,
    delay: float = 0.0,
    error: Exception | None = None,
    calls: list[tuple[str, dict[str, Any]]] | None = None,
) -> CallableAdapter:
    """Adapter returning ``payload`` after ``delay`` seconds, or raising ``error``."""

    async def call(operation: str, arguments: dict[str, Any]) -> Any:
        if calls is not None:
            calls.append((operation, dict(arguments)))
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        return payload if payload is not None else {"results": []}

    return CallableAdapter(name, call)


@pytest.fixture
def profiles_path(tmp_path: Path) -> Path:
    return tmp_path / "profiles.yaml"


@pytest.fixture
def write_profiles(profiles_path: Path) -> Callable[[dict[str, Any]], ProfileStore]:
    def _write(data: dict[str, Any]) -> ProfileStore:
        profiles_path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return ProfileStore(profiles_path)

    return _write


@pytest.fixture
def make_engine(profiles_path: Path) -> Callable[..., FederatedSearchEngine]:
    def _make(
        *adapters: CallableAdapter,
        store: ProfileStore | None = None,
        max_concurrency: int = 8,
    ) -> FederatedSearchEngine:
        registry = AdapterRegistry()
        for adapter in adapters:
            registry.register(adapter)
        return FederatedSearchEngine(
            AdapterDispatcher(registry),
            store or ProfileStore(profiles_path),
            max_concurrency=max_concurrency,
        )

    return _make


@pytest.fixture
def adapter_factory() -> Callable[..., CallableAdapter]:
    return fake_adapter
