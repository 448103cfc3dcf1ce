"""Standard interface for adapters used by the federated engine and the resolver.

An adapter executes a named operation with a string-keyed argument map and
returns a structured payload. The engine and resolver depend only on this
interface, never on a concrete adapter type.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

AdapterCall = Callable[[str, dict[str, Any]], Awaitable[Any]]


class SearchAdapter(ABC):
    """Base class for all adapters."""

    # Operation the federated engine calls for a search fan-out.
    search_operation: str = "search"

    @property
    @abstractmethod
    def name(self) -> str:
        """Canonical adapter name, e.g. 'pubmed'."""

    @abstractmethod
    async def call(self, operation: str, arguments: dict[str, Any]) -> Any:
        """Execute one operation and return its raw payload.

        Must return an empty result list for "no results" rather than raise.
        """

    async def close(self) -> None:
        """Release transport resources. No-op by default."""


class CallableAdapter(SearchAdapter):
    """Adapter backed by any ``async (operation, arguments) -> payload`` callable."""

    def __init__(
        self,
        name: str,
        fn: AdapterCall,
        search_operation: str = "search",
    ) -> None:
        if not name or not name.strip():
            raise ValueError("Adapter name cannot be empty")
        self._name = name.strip()
        self._fn = fn
        self.search_operation = search_operation

    @property
    def name(self) -> str:
        return self._name

    async def call(self, operation: str, arguments: dict[str, Any]) -> Any:
        return await self._fn(operation, arguments)
