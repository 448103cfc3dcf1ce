"""Smart resolver: input string -> adapter operation."""

from arivu.orchestrators.resolver.patterns import PATTERN_TABLE, InputPattern
from arivu.orchestrators.resolver.resolver import SmartResolver

__all__ = ["PATTERN_TABLE", "InputPattern", "SmartResolver"]
