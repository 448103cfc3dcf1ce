"""Per-source outcome of one federated fan-out task.

Public result types live in arivu.contracts.federated_v1.
"""

from dataclasses import dataclass

from arivu.contracts.federated_v1 import SourceError, SourceErrorKind, SourceResults


@dataclass
class SourceOutcome:
    """Exactly one of ``results`` / ``error`` is set."""

    source: str
    results: SourceResults | None = None
    error: SourceError | None = None

    @classmethod
    def failed(
        cls,
        source: str,
        message: str,
        kind: SourceErrorKind = SourceErrorKind.ADAPTER_FAILURE,
    ) -> "SourceOutcome":
        return cls(source=source, error=SourceError(source=source, error=message, kind=kind))
