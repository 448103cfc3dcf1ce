"""Result normalizer: adapter-specific payloads -> UnifiedSearchResult.

The results array is located through a fixed allow-list of field names
(RESULT_ARRAY_FIELDS). Identifiers follow per-adapter conventions such as
``PMID:<pmid>`` or ``arXiv:<id>``. Fields not lifted into the unified shape
are kept untouched in ``metadata``.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from arivu.contracts.federated_v1 import DEFAULT_WEIGHT, FederationMeta, UnifiedSearchResult
from arivu.orchestrators.search.constants import (
    DEFAULT_ID_FIELDS,
    EPOCH_MILLIS_CUTOFF,
    RESULT_ARRAY_FIELDS,
    SNIPPET_FIELDS,
    SNIPPET_MAX_CHARS,
    TIMESTAMP_FIELDS,
    TITLE_FIELDS,
    TOTAL_COUNT_FIELDS,
    URL_FIELDS,
)

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str | None:
    """Strings as-is, integers as decimal text; anything else is not an id."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, int):
        return str(value)
    return None


def _first_text(item: dict[str, Any], fields: tuple[str, ...]) -> tuple[str, str] | None:
    for field in fields:
        text = _as_text(item.get(field))
        if text is not None:
            return field, text
    return None


def _prefixed(prefix: str, item: dict[str, Any], fields: tuple[str, ...]) -> str | None:
    found = _first_text(item, fields)
    return f"{prefix}{found[1]}" if found else None


def extract_id(adapter: str, item: dict[str, Any]) -> str | None:
    if adapter == "pubmed":
        return _prefixed("PMID:", item, ("pmid", "id"))
    if adapter == "arxiv":
        return _prefixed("arXiv:", item, ("id", "arxiv_id"))
    if adapter == "hackernews":
        return _prefixed("hn:", item, ("id", "objectID"))
    if adapter == "reddit":
        return _prefixed("reddit:", item, ("id",))
    if adapter == "wikipedia":
        found = _first_text(item, ("title",))
        return f"wiki:{found[1].replace(' ', '_')}" if found else None
    if adapter in ("semantic-scholar", "semantic_scholar"):
        return _prefixed("S2:", item, ("paperId", "paper_id", "id"))
    if adapter == "github":
        number = item.get("number")
        if isinstance(number, int) and not isinstance(number, bool):
            return f"#{number}"
        found = _first_text(item, ("path", "full_name"))
        return found[1] if found else None
    if adapter == "biorxiv":
        found = _first_text(item, ("doi",))
        return found[1] if found else None
    if adapter == "google-scholar":
        found = _first_text(item, ("link",))
        return found[1] if found else None
    found = _first_text(item, DEFAULT_ID_FIELDS)
    return found[1] if found else None


def _truncate(text: str) -> str:
    if len(text) > SNIPPET_MAX_CHARS:
        return text[:SNIPPET_MAX_CHARS] + "..."
    return text


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 strings and epoch seconds (or milliseconds) -> aware datetime."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > EPOCH_MILLIS_CUTOFF else value
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    return None


def normalize(
    adapter: str,
    item: Any,
    source_rank: int,
    weight: float = DEFAULT_WEIGHT,
) -> UnifiedSearchResult | None:
    """Normalize one payload entry. None when it has no id or no title."""
    if not isinstance(item, dict):
        return None
    result_id = extract_id(adapter, item)
    title_found = _first_text(item, TITLE_FIELDS)
    if result_id is None or title_found is None:
        return None

    consumed = {title_found[0]}

    snippet = None
    for field in SNIPPET_FIELDS:
        value = item.get(field)
        if isinstance(value, str) and value:
            snippet = _truncate(value)
            consumed.add(field)
            break

    url = None
    for field in URL_FIELDS:
        value = item.get(field)
        if isinstance(value, str) and value:
            url = value
            consumed.add(field)
            break

    timestamp = None
    for field in TIMESTAMP_FIELDS:
        if field in item:
            timestamp = parse_timestamp(item[field])
            if timestamp is not None:
                consumed.add(field)
                break

    metadata = {k: v for k, v in item.items() if k not in consumed}

    return UnifiedSearchResult(
        source=adapter,
        id=result_id,
        title=title_found[1],
        snippet=snippet,
        url=url,
        timestamp=timestamp,
        metadata=metadata,
        federation=FederationMeta(source_rank=source_rank, weight=weight),
    )


def find_results_array(raw: Any) -> list[Any] | None:
    """The payload's results list, or None when the shape is not recognized."""
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for field in RESULT_ARRAY_FIELDS:
            value = raw.get(field)
            if isinstance(value, list):
                return value
    return None


def normalize_payload(
    adapter: str, raw: Any, weight: float = DEFAULT_WEIGHT
) -> list[UnifiedSearchResult]:
    """Normalize a whole adapter payload. Unrecognized shapes yield []."""
    items = find_results_array(raw)
    if items is None:
        keys = sorted(raw)[:10] if isinstance(raw, dict) else type(raw).__name__
        logger.debug("Normalizer: no results array in '%s' payload (%s)", adapter, keys)
        return []

    results: list[UnifiedSearchResult] = []
    skipped = 0
    for rank, item in enumerate(items, start=1):
        normalized = normalize(adapter, item, rank, weight)
        if normalized is None:
            skipped += 1
            continue
        results.append(normalized)
    if skipped:
        logger.debug(
            "Normalizer: skipped %d '%s' entries without id or title", skipped, adapter
        )
    return results


def extract_total_count(raw: Any) -> int | None:
    if not isinstance(raw, dict):
        return None
    for field in TOTAL_COUNT_FIELDS:
        value = raw.get(field)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
    return None
