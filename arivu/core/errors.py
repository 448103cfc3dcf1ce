"""Error taxonomy for the dispatch core.

Hierarchy:
    ArivuError
    ├── ProfileError
    │   ├── ProfileNotFoundError
    │   └── ProfileCycleError
    ├── ProfileStoreError
    ├── NoAdaptersSelectedError
    ├── AdapterNotFoundError
    ├── AdapterConfigError
    ├── ConfigError
    └── SourceFailure
        ├── AdapterTimeoutError
        └── AdapterFailureError

ProfileError and NoAdaptersSelectedError abort a federated search.
SourceFailure subclasses are caught per source and surface only as data
(SourceError entries) on the final result.
"""

from __future__ import annotations


class ArivuError(Exception):
    """Base exception for the dispatch core."""


class ProfileError(ArivuError):
    """A search profile could not be resolved."""


class ProfileNotFoundError(ProfileError):
    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = sorted(available or [])
        message = f"Profile '{name}' not found"
        if self.available:
            message += f". Available profiles: {', '.join(self.available)}"
        super().__init__(message)


class ProfileCycleError(ProfileError):
    def __init__(self, chain: list[str]) -> None:
        self.chain = list(chain)
        super().__init__(
            "Profile inheritance cycle: " + " -> ".join(self.chain)
        )


class ProfileStoreError(ArivuError):
    """Reading or writing the user profiles file failed."""


class NoAdaptersSelectedError(ArivuError):
    def __init__(self, profile: str | None = None) -> None:
        self.profile = profile
        where = f"profile '{profile}'" if profile else "request"
        super().__init__(f"No adapters selected for {where}")


class AdapterNotFoundError(ArivuError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Adapter '{name}' is not registered")


class SourceFailure(ArivuError):
    """One adapter failed; recovered by the engine."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class AdapterTimeoutError(SourceFailure):
    def __init__(self, source: str, timeout_ms: int, scope: str = "") -> None:
        self.timeout_ms = timeout_ms
        message = f"timeout after {timeout_ms}ms"
        if scope:
            message += f" ({scope})"
        super().__init__(source, message)


class AdapterFailureError(SourceFailure):
    """Adapter returned an error payload, a malformed payload, or raised."""


class AdapterConfigError(ArivuError):
    """The adapters file is missing required fields or cannot be parsed."""


class ConfigError(ArivuError):
    """Environment configuration is unusable."""
