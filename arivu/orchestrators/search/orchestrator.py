"""Federated search engine: profile-driven concurrent fan-out, merge, and dedup.

Pipeline:
  1. Resolve the profile (or an ad-hoc one from an explicit adapter list)
  2. Build per-adapter arguments (query, limit, response_format, overrides)
  3. One task per adapter, each under its own per-source timeout
  4. Global deadline over the whole fan-out; stragglers are cancelled
  5. Normalize each payload with the adapter's weight
  6. Deduplicate (optional) and merge grouped or interleaved
  7. Return a FederatedSearchResult; partial when any source failed

Only profile errors and an empty adapter selection raise. Every per-source
failure is recorded as a SourceError on the result.
"""

import asyncio
import time
from typing import Any

from arivu.contracts.federated_v1 import (
    FederatedSearchResult,
    MergeMode,
    ResolvedProfile,
    SourceError,
    SourceErrorKind,
    SourceResults,
)
from arivu.core.config import config
from arivu.core.errors import (
    AdapterTimeoutError,
    NoAdaptersSelectedError,
    SourceFailure,
)
from arivu.core.logger import logger
from arivu.observability import traceable
from arivu.orchestrators.search.dispatcher import AdapterDispatcher
from arivu.orchestrators.search.fusion import FederatedMerger
from arivu.orchestrators.search.models import SourceOutcome
from arivu.orchestrators.search.normalizer import extract_total_count, normalize_payload
from arivu.orchestrators.search.profiles import ProfileStore


def build_adapter_arguments(
    profile: ResolvedProfile,
    adapter: str,
    query: str,
    limit: int | None = None,
) -> dict[str, Any]:
    """Effective search arguments for one adapter.

    limit: per-adapter override > ``limit`` argument > profile default.
    """
    overrides = dict(profile.overrides.get(adapter, {}))
    override_limit = overrides.pop("limit", None)
    if override_limit is not None:
        effective_limit = override_limit
    elif limit is not None:
        effective_limit = limit
    else:
        effective_limit = profile.defaults.limit
    response_format = overrides.pop("response_format", profile.defaults.response_format)

    arguments: dict[str, Any] = {
        "query": query,
        "limit": effective_limit,
        "response_format": response_format,
    }
    for key, value in overrides.items():
        if key != "query":
            arguments[key] = value
    return arguments


class FederatedSearchEngine:
    """Queries the adapters of a profile in parallel and merges their results."""

    def __init__(
        self,
        dispatcher: AdapterDispatcher,
        profile_store: ProfileStore | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._profiles = profile_store if profile_store is not None else ProfileStore()
        self._max_concurrency = max(1, max_concurrency or config.max_concurrency)
        self._merger = FederatedMerger()

    @property
    def profiles(self) -> ProfileStore:
        return self._profiles

    def _resolve(
        self, profile: str | None, adapters: list[str] | None
    ) -> ResolvedProfile:
        if profile is not None and adapters is not None:
            raise ValueError("Pass either a profile name or an adapter list, not both")
        if adapters is not None:
            resolved = self._profiles.ad_hoc(adapters)
        else:
            resolved = self._profiles.resolve_profile(profile or config.default_profile)
        if not resolved.connectors:
            raise NoAdaptersSelectedError(None if resolved.ad_hoc else resolved.name)
        return resolved

    async def _run_source(
        self,
        adapter: str,
        arguments: dict[str, Any],
        weight: float,
        timeout_ms: int,
        semaphore: asyncio.Semaphore,
    ) -> SourceOutcome:
        async with semaphore:
            t0 = time.monotonic()
            try:
                payload = await asyncio.wait_for(
                    self._dispatcher.search(adapter, arguments),
                    timeout=timeout_ms / 1000,
                )
            except TimeoutError:
                err = AdapterTimeoutError(adapter, timeout_ms)
                return SourceOutcome.failed(adapter, err.message, SourceErrorKind.TIMEOUT)
            except SourceFailure as e:
                kind = (
                    SourceErrorKind.TIMEOUT
                    if isinstance(e, AdapterTimeoutError)
                    else SourceErrorKind.ADAPTER_FAILURE
                )
                return SourceOutcome.failed(adapter, e.message, kind)
            duration_ms = round((time.monotonic() - t0) * 1000, 1)

        try:
            results = normalize_payload(adapter, payload, weight)
        except Exception as e:
            return SourceOutcome.failed(adapter, f"malformed payload: {e}")
        return SourceOutcome(
            source=adapter,
            results=SourceResults(
                source=adapter,
                results=results,
                count=len(results),
                total_available=extract_total_count(payload),
                duration_ms=duration_ms,
            ),
        )

    @traceable(name="federated_search", run_type="chain")
    async def search(
        self,
        query: str,
        profile: str | None = None,
        adapters: list[str] | None = None,
        merge_mode: MergeMode | str | None = None,
        limit: int | None = None,
    ) -> FederatedSearchResult:
        """Run one federated search.

        Raises ProfileError for an unknown or cyclic profile and
        NoAdaptersSelectedError when the selection is empty. Adapter
        failures and timeouts are returned in ``errors``.
        """
        t0 = time.monotonic()
        resolved = self._resolve(profile, adapters)
        mode = MergeMode(merge_mode) if merge_mode else resolved.defaults.merge_mode
        profile_name = None if resolved.ad_hoc else resolved.name
        connectors = resolved.connectors

        logger.search_start(query, profile_name, connectors)

        semaphore = asyncio.Semaphore(self._max_concurrency)
        tasks: dict[str, asyncio.Task[SourceOutcome]] = {}
        for adapter in connectors:
            arguments = build_adapter_arguments(resolved, adapter, query, limit)
            tasks[adapter] = asyncio.create_task(
                self._run_source(
                    adapter,
                    arguments,
                    resolved.weight_for(adapter),
                    resolved.timeout_ms,
                    semaphore,
                ),
                name=f"federated:{adapter}",
            )

        try:
            _, pending = await asyncio.wait(
                tasks.values(), timeout=resolved.global_timeout_ms / 1000
            )
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        buckets: list[SourceResults] = []
        completed: list[str] = []
        errors: list[SourceError] = []
        for adapter in connectors:
            task = tasks[adapter]
            if task in pending:
                err = AdapterTimeoutError(adapter, resolved.global_timeout_ms, scope="global")
                outcome = SourceOutcome.failed(adapter, err.message, SourceErrorKind.TIMEOUT)
            else:
                outcome = task.result()

            if outcome.error is not None:
                errors.append(outcome.error)
                logger.source_failed(adapter, outcome.error.error, outcome.error.is_timeout)
            elif outcome.results is not None:
                buckets.append(outcome.results)
                completed.append(adapter)
                logger.source_ok(
                    adapter,
                    outcome.results.count,
                    (outcome.results.duration_ms or 0.0) / 1000,
                )

        merged = self._merger.merge(buckets, mode, resolved.deduplication)
        duration_ms = round((time.monotonic() - t0) * 1000, 1)

        logger.search_done(
            merged.total_count,
            completed,
            [e.source for e in errors],
            duration_ms / 1000,
        )

        return FederatedSearchResult(
            query=query,
            profile=profile_name,
            merge_mode=mode,
            results=merged.results,
            total_count=merged.total_count,
            completed=completed,
            errors=errors,
            partial=bool(errors),
            duplicates_removed=merged.duplicates_removed,
            duration_ms=duration_ms,
        )
