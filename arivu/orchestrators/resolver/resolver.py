"""Smart resolver: maps a free-form input (URL, ID, shorthand) to adapter operations.

Ambiguity is reported, not resolved: ``resolve_all`` returns every matching
pattern in a stable priority order and the host decides what to run.
"""

import logging
import re

from arivu.contracts.federated_v1 import PatternInfo, ResolvedAction
from arivu.observability import traceable
from arivu.orchestrators.resolver.patterns import PATTERN_TABLE, InputPattern

logger = logging.getLogger(__name__)


def _confidence(priority: int) -> float:
    return min(1.0, max(0.0, priority / 100))


class SmartResolver:
    """Priority-ordered pattern router over a fixed pattern table."""

    def __init__(self, patterns: tuple[InputPattern, ...] = PATTERN_TABLE) -> None:
        # Callers may pass an unsorted table; keep the stable-sort guarantee.
        self._patterns = tuple(sorted(patterns, key=lambda p: -p.priority))

    def _apply(self, pattern: InputPattern, match: re.Match[str]) -> ResolvedAction:
        arguments: dict[str, str] = {}
        for capture, arg_name in pattern.arg_mapping:
            value = match.group(capture)
            if value is not None:
                arguments[arg_name] = value
        return ResolvedAction(
            adapter=pattern.adapter,
            operation=pattern.operation,
            arguments=arguments,
            confidence=_confidence(pattern.priority),
            priority=pattern.priority,
            pattern_id=pattern.id,
            description=pattern.description,
        )

    def resolve_best(self, text: str) -> ResolvedAction | None:
        """Highest-priority match, or None. Stops at the first hit."""
        candidate = text.strip()
        for pattern in self._patterns:
            match = pattern.pattern.search(candidate)
            if match:
                return self._apply(pattern, match)
        return None

    @traceable(name="resolver.resolve_all", run_type="chain")
    def resolve_all(self, text: str) -> list[ResolvedAction]:
        """Every matching pattern, highest priority first (declaration order on ties)."""
        candidate = text.strip()
        actions: list[ResolvedAction] = []
        for pattern in self._patterns:
            match = pattern.pattern.search(candidate)
            if match:
                actions.append(self._apply(pattern, match))
        if len(actions) > 1:
            logger.debug(
                "Resolver: %d patterns match %r: %s",
                len(actions),
                candidate[:100],
                [a.pattern_id for a in actions],
            )
        return actions

    def can_resolve(self, text: str) -> bool:
        return self.resolve_best(text) is not None

    def list_patterns(self) -> list[PatternInfo]:
        return [p.info() for p in self._patterns]
