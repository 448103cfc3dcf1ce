"""Merging and deduplication of per-source result lists.

Grouped merge keeps one bucket per source in profile declaration order.
Interleaved merge ranks every hit by ``weight / source_rank``; ties go to
the earlier-declared source, then the better in-source rank.
Deduplication runs before either merge and always keeps the copy from the
most preferred source (``prefer`` order, then declaration order, then rank).
"""

import logging
import re
from dataclasses import dataclass
from difflib import SequenceMatcher

from arivu.contracts.federated_v1 import (
    DeduplicationConfig,
    DedupStrategy,
    GroupedResults,
    InterleavedResults,
    MergeMode,
    SourceResults,
    UnifiedSearchResult,
)
from arivu.orchestrators.search.constants import FUZZY_TITLE_THRESHOLD

logger = logging.getLogger(__name__)

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)
_DOI_IN_URL = re.compile(r"doi\.org/(10\.\d{4,}/\S+)", re.IGNORECASE)


def interleaved_score(weight: float, source_rank: int) -> float:
    """Rank-1 hit with weight 1.0 scores exactly 1.0; score is linear in weight."""
    return weight / source_rank


def normalize_title(title: str) -> str:
    text = title.lower()
    text = re.sub(r"[^\w\s]", " ", text)
    return " ".join(text.split())


def normalize_doi(value: str) -> str:
    doi = value.strip().lower()
    for prefix in _DOI_PREFIXES:
        if doi.startswith(prefix):
            doi = doi[len(prefix):]
            break
    return doi.rstrip("/")


def _url_key(result: UnifiedSearchResult) -> str | None:
    if not result.url:
        return None
    url = result.url.strip().rstrip("/")
    return url or None


def _doi_key(result: UnifiedSearchResult) -> str | None:
    raw = result.metadata.get("doi")
    if isinstance(raw, str) and raw.strip():
        return normalize_doi(raw)
    if result.id.lower().startswith(("10.", "doi:")):
        return normalize_doi(result.id)
    if result.url:
        match = _DOI_IN_URL.search(result.url)
        if match:
            return normalize_doi(match.group(1))
    return None


def titles_match(a: str, b: str, threshold: float = FUZZY_TITLE_THRESHOLD) -> bool:
    if not a or not b:
        return False
    if a == b:
        return True
    matcher = SequenceMatcher(None, a, b)
    if matcher.real_quick_ratio() < threshold or matcher.quick_ratio() < threshold:
        return False
    return matcher.ratio() >= threshold


def deduplicate_results(
    per_source: list[SourceResults],
    dedup: DeduplicationConfig,
) -> tuple[list[SourceResults], int]:
    """Drop duplicates across sources; returns (filtered buckets, number dropped)."""
    declared = {bucket.source: i for i, bucket in enumerate(per_source)}
    prefer = {name: i for i, name in enumerate(dedup.prefer)}

    def preference(r: UnifiedSearchResult) -> tuple[int, int, int]:
        return (
            prefer.get(r.source, len(prefer)),
            declared.get(r.source, len(declared)),
            r.federation.source_rank,
        )

    candidates = sorted(
        (r for bucket in per_source for r in bucket.results), key=preference
    )

    dropped: set[int] = set()
    if dedup.strategy == DedupStrategy.TITLE_FUZZY:
        kept_titles: list[str] = []
        for r in candidates:
            title = normalize_title(r.title)
            if any(titles_match(title, seen) for seen in kept_titles):
                dropped.add(id(r))
            elif title:
                kept_titles.append(title)
    else:
        key_fn = _url_key if dedup.strategy == DedupStrategy.URL else _doi_key
        seen_keys: set[str] = set()
        for r in candidates:
            key = key_fn(r)
            if key is None:
                continue
            if key in seen_keys:
                dropped.add(id(r))
            else:
                seen_keys.add(key)

    if not dropped:
        return per_source, 0

    filtered: list[SourceResults] = []
    for bucket in per_source:
        results = [r for r in bucket.results if id(r) not in dropped]
        filtered.append(
            bucket.model_copy(update={"results": results, "count": len(results)})
        )
    logger.info(
        "Fusion: dedup strategy=%s removed %d duplicates", dedup.strategy, len(dropped)
    )
    return filtered, len(dropped)


@dataclass
class MergeOutcome:
    """Merged results plus the counts the federated result reports."""

    results: GroupedResults | InterleavedResults
    total_count: int
    duplicates_removed: int = 0


class FederatedMerger:
    """Combines per-source buckets into grouped or interleaved results."""

    def merge(
        self,
        per_source: list[SourceResults],
        merge_mode: MergeMode,
        dedup: DeduplicationConfig | None = None,
    ) -> MergeOutcome:
        """Merge buckets that are already in profile declaration order."""
        removed = 0
        if dedup is not None and dedup.enabled:
            per_source, removed = deduplicate_results(per_source, dedup)

        total = sum(len(bucket.results) for bucket in per_source)

        if merge_mode == MergeMode.INTERLEAVED:
            merged = self._interleave(per_source)
        else:
            merged = GroupedResults(sources=per_source)

        logger.debug(
            "Fusion: %d sources -> %d results | mode=%s removed=%d",
            len(per_source),
            total,
            merge_mode,
            removed,
        )
        return MergeOutcome(results=merged, total_count=total, duplicates_removed=removed)

    def _interleave(self, per_source: list[SourceResults]) -> InterleavedResults:
        scored: list[tuple[float, int, int, UnifiedSearchResult]] = []
        for order, bucket in enumerate(per_source):
            for r in bucket.results:
                fed = r.federation
                score = interleaved_score(fed.weight, fed.source_rank)
                scored.append(
                    (
                        score,
                        order,
                        fed.source_rank,
                        r.model_copy(
                            update={"federation": fed.model_copy(update={"score": score})}
                        ),
                    )
                )
        scored.sort(key=lambda x: (-x[0], x[1], x[2]))
        return InterleavedResults(results=[r for _, _, _, r in scored])
