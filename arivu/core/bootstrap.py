"""Adapter wiring at startup: adapters file -> registry, dispatcher, engine, resolver."""

from dataclasses import dataclass
from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError, model_validator

from arivu.core.config import config
from arivu.core.errors import AdapterConfigError, ConfigError
from arivu.core.logger import logger
from arivu.mcp_client.client import MCPClient
from arivu.orchestrators.resolver import SmartResolver
from arivu.orchestrators.search.backends import HttpJsonAdapter, MCPToolAdapter
from arivu.orchestrators.search.constants import AdapterKind
from arivu.orchestrators.search.dispatcher import AdapterDispatcher
from arivu.orchestrators.search.interface import SearchAdapter
from arivu.orchestrators.search.orchestrator import FederatedSearchEngine
from arivu.orchestrators.search.profiles import ProfileStore
from arivu.orchestrators.search.registry import AdapterRegistry


class AdapterSpec(BaseModel):
    """One entry under ``adapters:`` in the adapters file."""

    type: AdapterKind
    command: str | None = Field(default=None, description="MCP server executable")
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    url: str | None = Field(default=None, description="HTTP endpoint of the search operation")
    search_tool: str = Field(default="search", description="Operation used for federated search")
    tools: dict[str, str] = Field(
        default_factory=dict,
        description="operation -> MCP tool name (mcp) or endpoint URL (http)",
    )
    timeout: float = Field(default=10.0, gt=0, description="HTTP client timeout in seconds")

    @model_validator(mode="after")
    def _check_transport_fields(self) -> "AdapterSpec":
        if self.type == AdapterKind.MCP and not self.command:
            raise ValueError("mcp adapters need a command")
        if self.type == AdapterKind.HTTP and not self.url:
            raise ValueError("http adapters need a url")
        return self


def load_adapter_specs(path: Path) -> dict[str, AdapterSpec]:
    """Parse the adapters file. A missing file means no adapters."""
    if not path.exists():
        logger.debug(f"Adapters file not found: {path}")
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise AdapterConfigError(f"Cannot read adapters file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict) or not isinstance(data.get("adapters", {}), dict):
        raise AdapterConfigError(f"Adapters file {path} must contain an 'adapters' mapping")

    specs: dict[str, AdapterSpec] = {}
    for name, raw in (data.get("adapters") or {}).items():
        try:
            specs[str(name)] = AdapterSpec.model_validate(raw or {})
        except ValidationError as e:
            raise AdapterConfigError(f"Invalid adapter '{name}' in {path}: {e}") from e
    return specs


def build_adapter(name: str, spec: AdapterSpec) -> SearchAdapter:
    if spec.type == AdapterKind.MCP:
        assert spec.command is not None
        client = MCPClient(spec.command, spec.args, env=spec.env or None)
        return MCPToolAdapter(name, client, search_tool=spec.search_tool, tools=spec.tools)
    assert spec.url is not None
    return HttpJsonAdapter(
        name,
        spec.url,
        tools=spec.tools,
        search_operation=spec.search_tool,
        timeout=spec.timeout,
    )


@dataclass
class Runtime:
    """Everything the interfaces need; ``close()`` releases adapter transports."""

    registry: AdapterRegistry
    dispatcher: AdapterDispatcher
    engine: FederatedSearchEngine
    resolver: SmartResolver
    profiles: ProfileStore

    async def close(self) -> None:
        await self.registry.close_all()


def build_runtime(
    adapters_file: Path | None = None,
    profiles_file: Path | None = None,
    extra_adapters: list[SearchAdapter] | None = None,
) -> Runtime:
    """Wire adapters from the adapters file (plus any passed in) into a Runtime."""
    errors = config.validate()
    if errors:
        raise ConfigError("; ".join(errors))

    registry = AdapterRegistry()
    path = adapters_file or config.adapters_file
    for name, spec in load_adapter_specs(path).items():
        registry.register(build_adapter(name, spec))
    for adapter in extra_adapters or []:
        registry.register(adapter)

    dispatcher = AdapterDispatcher(registry)
    profiles = ProfileStore(profiles_file)
    engine = FederatedSearchEngine(dispatcher, profiles, config.max_concurrency)

    logger.debug(
        f"Bootstrap complete: {len(registry)} adapters ({', '.join(registry.all_names())})"
    )
    return Runtime(
        registry=registry,
        dispatcher=dispatcher,
        engine=engine,
        resolver=SmartResolver(),
        profiles=profiles,
    )
