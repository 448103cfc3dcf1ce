"""Adapter backed by a JSON-over-HTTP endpoint (GET, arguments as query params)."""

from typing import Any

import httpx

from arivu.core.errors import AdapterFailureError
from arivu.orchestrators.search.interface import SearchAdapter


def _query_params(arguments: dict[str, Any]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for key, value in arguments.items():
        if value is None:
            continue
        if isinstance(value, bool):
            params[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            params[key] = [str(v) for v in value]
        else:
            params[key] = value
    return params


class HttpJsonAdapter(SearchAdapter):
    """Each operation maps to an endpoint URL; ``url`` serves the search operation."""

    def __init__(
        self,
        name: str,
        url: str,
        tools: dict[str, str] | None = None,
        search_operation: str = "search",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not url:
            raise ValueError(f"HTTP adapter '{name}' needs a url")
        self._name = name
        self.search_operation = search_operation
        self._endpoints = {search_operation: url, **(tools or {})}
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    async def call(self, operation: str, arguments: dict[str, Any]) -> Any:
        endpoint = self._endpoints.get(operation)
        if endpoint is None:
            raise AdapterFailureError(
                self._name, f"operation '{operation}' has no endpoint"
            )
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.get(
                endpoint,
                params=_query_params(arguments),
                follow_redirects=True,
            )
            response.raise_for_status()
            return response.json()
