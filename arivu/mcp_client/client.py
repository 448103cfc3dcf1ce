"""Generic MCP client for STDIO transport. One client per adapter server."""

import json
import os
from contextlib import AsyncExitStack
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from arivu.core.logger import logger


def _extract_text_from_content(content: list) -> str:
    parts: list[str] = []
    for item in content:
        if hasattr(item, "text") and item.text:
            parts.append(item.text)
        elif isinstance(item, dict) and item.get("type") == "text":
            parts.append(item.get("text", ""))
    return "".join(parts)


def _is_shutdown_exc(exc: BaseException) -> bool:
    if isinstance(exc, GeneratorExit):
        return True
    return isinstance(exc, RuntimeError) and "cancel scope" in str(exc)


class MCPClient:
    """Lazily spawns an MCP server over stdio and calls its tools.

    Tool results are returned in the dispatcher's payload convention:
    ``{"success": False, "error": ...}`` on failure, structured content as-is,
    otherwise the JSON text decoded (or wrapped in ``output``).
    """

    def __init__(
        self,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
    ):
        if not command:
            raise ValueError("MCP command cannot be empty")
        self._command = command
        self._args = list(args or [])
        self._env = env
        self._session: ClientSession | None = None
        self._exit_stack: AsyncExitStack | None = None
        self._stderr_devnull: Any = None

    @property
    def command_line(self) -> str:
        return " ".join([self._command, *self._args])

    async def _ensure_connected(self) -> ClientSession:
        if self._session is not None:
            return self._session
        self._exit_stack = AsyncExitStack()
        self._stderr_devnull = open(os.devnull, "w")
        server_params = StdioServerParameters(
            command=self._command,
            args=self._args,
            env={**os.environ, **self._env} if self._env else None,
        )
        read_stream, write_stream = await self._exit_stack.enter_async_context(
            stdio_client(server_params, errlog=self._stderr_devnull)
        )
        session = await self._exit_stack.enter_async_context(
            ClientSession(read_stream, write_stream)
        )
        await session.initialize()
        self._session = session
        logger.info(f"MCP: connected  {self.command_line}")
        return session

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Call one tool. Transport errors propagate to the dispatcher."""
        session = await self._ensure_connected()
        result = await session.call_tool(name, arguments)

        if getattr(result, "isError", False):
            text = _extract_text_from_content(result.content)
            return {"success": False, "error": text.strip() or f"Tool '{name}' returned error"}

        structured = getattr(result, "structuredContent", None)
        if isinstance(structured, dict) and structured:
            return dict(structured)

        text = _extract_text_from_content(result.content)
        if not text.strip():
            return {"success": False, "error": f"Tool '{name}' returned empty response"}
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug(f"MCP: tool '{name}' returned non-JSON text")
            return {"success": True, "output": text}

    async def close(self) -> None:
        if self._exit_stack is not None:
            try:
                await self._exit_stack.aclose()
            except (GeneratorExit, RuntimeError) as e:
                if not _is_shutdown_exc(e):
                    raise
            except BaseExceptionGroup as eg:
                # anyio task groups wrap shutdown errors; re-raise anything else
                if not all(_is_shutdown_exc(e) for e in eg.exceptions):
                    raise
            self._exit_stack = None
            self._session = None
            logger.debug(f"MCP: disconnected  {self.command_line}")
        if self._stderr_devnull is not None:
            try:
                self._stderr_devnull.close()
            except OSError:
                pass
            self._stderr_devnull = None
