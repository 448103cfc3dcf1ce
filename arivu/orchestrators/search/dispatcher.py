"""Adapter dispatcher: invokes adapter operations and validates their payloads.

One dispatcher serves every registered adapter. Payload conventions:
  - ``{"success": false, "error": ...}`` or a non-empty ``error`` field is a failure
  - an ``output`` field holding a JSON string or a dict is unwrapped
  - anything that is not a dict or list after unwrapping is malformed
Failures raise AdapterFailureError; the federated engine turns them into data.
"""

import json
import logging
import time
from typing import Any

from arivu.core.errors import AdapterFailureError, AdapterNotFoundError, SourceFailure
from arivu.orchestrators.search.registry import AdapterRegistry

logger = logging.getLogger(__name__)


class AdapterDispatcher:
    """Routes operation calls to registered adapters and parses their payloads."""

    def __init__(self, registry: AdapterRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    def has_adapter(self, name: str) -> bool:
        return self._registry.has(name)

    async def call(
        self, adapter_name: str, operation: str, arguments: dict[str, Any]
    ) -> dict[str, Any] | list[Any]:
        """Call ``operation`` on ``adapter_name`` and return the unwrapped payload."""
        try:
            adapter = self._registry.get(adapter_name)
        except AdapterNotFoundError as e:
            raise AdapterFailureError(adapter_name, str(e)) from e

        t0 = time.monotonic()
        try:
            result = await adapter.call(operation, arguments)
        except SourceFailure:
            raise
        except Exception as e:
            logger.warning(
                "Dispatcher: %s.%s raised %s: %s",
                adapter_name,
                operation,
                type(e).__name__,
                e,
            )
            message = str(e) or type(e).__name__
            raise AdapterFailureError(adapter_name, message) from e
        elapsed_ms = round((time.monotonic() - t0) * 1000, 1)

        logger.debug(
            "Dispatcher: %s.%s returned in %.1fms", adapter_name, operation, elapsed_ms
        )
        return self._parse_response(result, adapter_name)

    async def search(
        self, adapter_name: str, arguments: dict[str, Any]
    ) -> dict[str, Any] | list[Any]:
        """Run the adapter's search operation."""
        try:
            operation = self._registry.get(adapter_name).search_operation
        except AdapterNotFoundError as e:
            raise AdapterFailureError(adapter_name, str(e)) from e
        return await self.call(adapter_name, operation, arguments)

    def _parse_response(
        self, result: Any, source: str
    ) -> dict[str, Any] | list[Any]:
        if isinstance(result, list):
            return result
        if not isinstance(result, dict):
            raise AdapterFailureError(
                source, f"malformed payload: expected object, got {type(result).__name__}"
            )

        error = result.get("error")
        if result.get("success") is False:
            raise AdapterFailureError(source, str(error or "adapter reported failure"))
        if error:
            raise AdapterFailureError(source, str(error))

        output = result.get("output")
        if isinstance(output, str):
            try:
                data = json.loads(output)
            except json.JSONDecodeError as e:
                raise AdapterFailureError(
                    source, f"malformed payload: invalid JSON output ({e.msg})"
                ) from e
            if not isinstance(data, (dict, list)):
                raise AdapterFailureError(
                    source,
                    f"malformed payload: output decodes to {type(data).__name__}",
                )
            return data
        if isinstance(output, (dict, list)):
            return output
        return result
