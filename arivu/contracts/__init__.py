"""Federated dispatch contract v1: shared types for resolution, profiles, and federated results."""

from arivu.contracts.federated_v1 import (
    DedupStrategy,
    DeduplicationConfig,
    FederatedSearchResult,
    FederationMeta,
    GroupedResults,
    InterleavedResults,
    MergeMode,
    PatternInfo,
    ProfileDefaults,
    ResolvedAction,
    ResolvedProfile,
    SearchProfile,
    SourceError,
    SourceErrorKind,
    SourceResults,
    UnifiedSearchResult,
)

__all__ = [
    "DedupStrategy",
    "DeduplicationConfig",
    "FederatedSearchResult",
    "FederationMeta",
    "GroupedResults",
    "InterleavedResults",
    "MergeMode",
    "PatternInfo",
    "ProfileDefaults",
    "ResolvedAction",
    "ResolvedProfile",
    "SearchProfile",
    "SourceError",
    "SourceErrorKind",
    "SourceResults",
    "UnifiedSearchResult",
]
