"""Orchestrators: input resolution and federated search."""

from arivu.orchestrators.resolver import SmartResolver
from arivu.orchestrators.search import (
    AdapterDispatcher,
    AdapterRegistry,
    FederatedSearchEngine,
    ProfileStore,
    SearchAdapter,
)

__all__ = [
    "AdapterDispatcher",
    "AdapterRegistry",
    "FederatedSearchEngine",
    "ProfileStore",
    "SearchAdapter",
    "SmartResolver",
]
