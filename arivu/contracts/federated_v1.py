"""Federated Dispatch Contract v1.

Defines the canonical types for:
  - Input resolution (ResolvedAction, PatternInfo)
  - Search profile definitions (SearchProfile, ResolvedProfile)
  - Normalized result payload (UnifiedSearchResult, FederatedSearchResult)

Every model serializes to a JSON-compatible tree with
``model_dump(mode="json", by_alias=True)``; presentation layers consume
that tree and attach no further semantics to it.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

DEFAULT_LIMIT = 10
DEFAULT_RESPONSE_FORMAT = "concise"
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_GLOBAL_TIMEOUT_MS = 15000
DEFAULT_WEIGHT = 1.0

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MergeMode(StrEnum):
    """How per-source result lists are combined."""

    GROUPED = "grouped"  # One bucket per source, native order (default)
    INTERLEAVED = "interleaved"  # One list ranked by weight / source_rank


class DedupStrategy(StrEnum):
    URL = "url"
    DOI = "doi"
    TITLE_FUZZY = "title_fuzzy"


class SourceErrorKind(StrEnum):
    TIMEOUT = "timeout"
    ADAPTER_FAILURE = "adapter_failure"


def _clean_adapter_names(value: list[str]) -> list[str]:
    cleaned: list[str] = []
    for raw in value:
        name = str(raw).strip()
        if not name:
            raise ValueError("adapter names must not be empty")
        cleaned.append(name)
    return cleaned


# ---------------------------------------------------------------------------
# Input resolution
# ---------------------------------------------------------------------------


class ResolvedAction(BaseModel):
    """One pattern applied to one input: what to call and with which arguments."""

    adapter: str = Field(description="Adapter name, e.g. 'arxiv', 'youtube'")
    operation: str = Field(description="Operation on the adapter, e.g. 'get'")
    arguments: dict[str, str] = Field(
        default_factory=dict,
        description="Operation arguments extracted from named capture groups",
    )
    confidence: float = Field(
        ge=0.0,
        le=1.0,
        description="priority / 100 clamped to [0, 1]; orders exactly like priority",
    )
    priority: int = Field(description="Priority of the pattern that matched")
    pattern_id: str = Field(description="Id of the pattern that matched")
    description: str = Field(default="")


class PatternInfo(BaseModel):
    """Read-only view of one pattern table entry, for documentation."""

    id: str
    adapter: str
    operation: str
    priority: int
    description: str = Field(default="")
    example: str = Field(default="", description="Sample input the pattern matches")


# ---------------------------------------------------------------------------
# Search profiles
# ---------------------------------------------------------------------------


class ProfileDefaults(BaseModel):
    """Parameters sent to every adapter unless overridden per adapter."""

    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    response_format: str = Field(default=DEFAULT_RESPONSE_FORMAT)
    merge_mode: MergeMode = Field(default=MergeMode.GROUPED)


class DeduplicationConfig(BaseModel):
    enabled: bool = Field(default=False)
    strategy: DedupStrategy = Field(default=DedupStrategy.URL)
    prefer: list[str] = Field(
        default_factory=list,
        description="Adapters whose copy of a duplicate is kept, most preferred first",
    )

    @field_validator("prefer")
    @classmethod
    def _validate_prefer(cls, value: list[str]) -> list[str]:
        return _clean_adapter_names(value)


class SearchProfile(BaseModel):
    """A named, inheritable bundle of adapters and tuning parameters.

    Only fields present in ``model_fields_set`` (explicitly declared) take
    part in inheritance; a child that never mentions ``weights`` keeps its
    parent's weights.
    """

    name: str
    description: str | None = Field(default=None)
    extends: str | None = Field(default=None, description="Parent profile name")
    connectors: list[str] = Field(
        default_factory=list,
        description="Adapter list; when set on a child it replaces the inherited list",
    )
    add: list[str] = Field(default_factory=list, description="Adapters appended after inheritance")
    exclude: list[str] = Field(default_factory=list, description="Adapters removed after inheritance")
    defaults: ProfileDefaults = Field(default_factory=ProfileDefaults)
    weights: dict[str, float] = Field(
        default_factory=dict,
        description="Adapter name -> relevance weight (default 1.0)",
    )
    overrides: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Adapter name -> parameters sent instead of, or in addition to, the defaults",
    )
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0, description="Per-source timeout")
    global_timeout_ms: int = Field(
        default=DEFAULT_GLOBAL_TIMEOUT_MS, gt=0, description="Deadline for the whole fan-out"
    )
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)

    @field_validator("connectors", "add", "exclude")
    @classmethod
    def _validate_adapter_lists(cls, value: list[str]) -> list[str]:
        return _clean_adapter_names(value)

    @field_validator("weights")
    @classmethod
    def _validate_weights(cls, value: dict[str, float]) -> dict[str, float]:
        for adapter, weight in value.items():
            if weight < 0:
                raise ValueError(f"weight for '{adapter}' must not be negative")
        return value

    @field_validator("overrides")
    @classmethod
    def _validate_overrides(cls, value: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        for adapter, params in value.items():
            if "limit" not in params:
                continue
            raw = params["limit"]
            limit = 0
            if isinstance(raw, int) and not isinstance(raw, bool):
                limit = raw
            elif isinstance(raw, str) and raw.strip().isdigit():
                limit = int(raw)
            if limit < 1:
                raise ValueError(f"overrides.{adapter}.limit must be a positive integer, got {raw!r}")
            params["limit"] = limit
        return value


class ResolvedProfile(BaseModel):
    """A profile with inheritance flattened. Recomputed per call, never persisted."""

    name: str
    description: str | None = Field(default=None)
    chain: list[str] = Field(
        default_factory=list, description="Profile names walked, root first"
    )
    connectors: list[str] = Field(default_factory=list)
    defaults: ProfileDefaults = Field(default_factory=ProfileDefaults)
    weights: dict[str, float] = Field(default_factory=dict)
    overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS)
    global_timeout_ms: int = Field(default=DEFAULT_GLOBAL_TIMEOUT_MS)
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)
    ad_hoc: bool = Field(default=False, description="Built from an explicit adapter list")

    def weight_for(self, adapter: str) -> float:
        return self.weights.get(adapter, DEFAULT_WEIGHT)


# ---------------------------------------------------------------------------
# Normalized results
# ---------------------------------------------------------------------------


class FederationMeta(BaseModel):
    """Bookkeeping attached to every result by the federated engine."""

    source_rank: int = Field(ge=1, description="1-based position in the adapter's own list")
    weight: float = Field(default=DEFAULT_WEIGHT)
    score: float | None = Field(default=None, description="Set only in interleaved mode")


class UnifiedSearchResult(BaseModel):
    """One hit from one adapter, in the shared shape."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(description="Adapter that produced the hit")
    id: str = Field(description="Stable identifier, conventionally '<prefix>:<native-id>'")
    title: str
    snippet: str | None = Field(default=None)
    url: str | None = Field(default=None)
    timestamp: datetime | None = Field(default=None)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Every adapter field not lifted into the fields above",
    )
    federation: FederationMeta = Field(alias="_federation")


class SourceResults(BaseModel):
    source: str
    results: list[UnifiedSearchResult] = Field(default_factory=list)
    count: int = Field(default=0)
    total_available: int | None = Field(
        default=None, description="Total reported by the adapter, when it reports one"
    )
    duration_ms: float | None = Field(default=None)


class SourceError(BaseModel):
    """A source that did not complete. Data, never raised."""

    source: str
    error: str
    kind: SourceErrorKind = Field(default=SourceErrorKind.ADAPTER_FAILURE)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_timeout(self) -> bool:
        return self.kind == SourceErrorKind.TIMEOUT


class GroupedResults(BaseModel):
    type: Literal["grouped"] = "grouped"
    sources: list[SourceResults] = Field(default_factory=list)


class InterleavedResults(BaseModel):
    type: Literal["interleaved"] = "interleaved"
    results: list[UnifiedSearchResult] = Field(default_factory=list)


FederatedResults = Annotated[
    GroupedResults | InterleavedResults, Field(discriminator="type")
]


class FederatedSearchResult(BaseModel):
    """Returned by the federated engine for one query."""

    query: str
    profile: str | None = Field(default=None, description="Profile name, None for ad-hoc")
    merge_mode: MergeMode
    results: FederatedResults
    total_count: int = Field(default=0)
    completed: list[str] = Field(
        default_factory=list, description="Adapters that returned, in declaration order"
    )
    errors: list[SourceError] = Field(default_factory=list)
    partial: bool = Field(default=False, description="True when errors is non-empty")
    duplicates_removed: int = Field(default=0)
    duration_ms: float | None = Field(default=None)

    def all_results(self) -> list[UnifiedSearchResult]:
        if isinstance(self.results, GroupedResults):
            return [r for group in self.results.sources for r in group.results]
        return list(self.results.results)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def all_failed(self) -> bool:
        return not self.completed and bool(self.errors)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
