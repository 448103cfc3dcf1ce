from arivu.orchestrators.search.backends.http import HttpJsonAdapter
from arivu.orchestrators.search.backends.mcp import MCPToolAdapter

__all__ = [
    "HttpJsonAdapter",
    "MCPToolAdapter",
]
