"""Adapter registry: name -> adapter instance.

Built once at bootstrap and read-only afterwards; lookups of unknown names
raise AdapterNotFoundError.
"""

import logging

from arivu.core.errors import AdapterNotFoundError
from arivu.orchestrators.search.interface import SearchAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Stores and looks up adapters by canonical name."""

    def __init__(self) -> None:
        self._adapters: dict[str, SearchAdapter] = {}

    def register(self, adapter: SearchAdapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Registry: replacing adapter '%s'", name)
        self._adapters[name] = adapter
        logger.info(
            "Registered adapter: name=%s search_operation=%s type=%s",
            name,
            adapter.search_operation,
            type(adapter).__name__,
        )

    def get(self, name: str) -> SearchAdapter:
        adapter = self._adapters.get(name)
        if adapter is None:
            raise AdapterNotFoundError(name)
        return adapter

    def has(self, name: str) -> bool:
        return name in self._adapters

    def all_names(self) -> list[str]:
        return sorted(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    async def close_all(self) -> None:
        for name, adapter in self._adapters.items():
            try:
                await adapter.close()
            except Exception as e:
                logger.warning("Registry: closing adapter '%s' failed: %s", name, e)
