"""Adapter backed by a tool-serving MCP server over stdio."""

from typing import Any

from arivu.mcp_client.client import MCPClient
from arivu.orchestrators.search.interface import SearchAdapter


class MCPToolAdapter(SearchAdapter):
    """Maps adapter operations onto MCP tool names.

    ``tools`` renames operations (operation -> tool); operations not listed
    are called as tools of the same name.
    """

    def __init__(
        self,
        name: str,
        client: MCPClient,
        search_tool: str = "search",
        tools: dict[str, str] | None = None,
    ):
        self._name = name
        self._client = client
        self.search_operation = search_tool
        self._tools = dict(tools or {})

    @property
    def name(self) -> str:
        return self._name

    def tool_for(self, operation: str) -> str:
        return self._tools.get(operation, operation)

    async def call(self, operation: str, arguments: dict[str, Any]) -> Any:
        return await self._client.call_tool(self.tool_for(operation), arguments)

    async def close(self) -> None:
        await self._client.close()
