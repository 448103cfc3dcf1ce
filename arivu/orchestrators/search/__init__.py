"""Federated search: profile-driven fan-out over adapters with merge and dedup."""

from arivu.orchestrators.search.dispatcher import AdapterDispatcher
from arivu.orchestrators.search.interface import CallableAdapter, SearchAdapter
from arivu.orchestrators.search.orchestrator import FederatedSearchEngine
from arivu.orchestrators.search.profiles import BUILTIN_PROFILES, ProfileStore
from arivu.orchestrators.search.registry import AdapterRegistry

__all__ = [
    "BUILTIN_PROFILES",
    "AdapterDispatcher",
    "AdapterRegistry",
    "CallableAdapter",
    "FederatedSearchEngine",
    "ProfileStore",
    "SearchAdapter",
]
