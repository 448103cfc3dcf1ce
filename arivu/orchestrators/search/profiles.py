"""Search profiles: built-in bundles, the user profiles file, and inheritance.

User profiles live in a YAML mapping of profile name -> definition and are
layered over the built-ins by name. A profile is flattened on every
``resolve_profile`` call, so edits to a parent apply immediately.

Flattening walks ``extends`` to the root, then applies each level root
first (descendant wins):
  - ``connectors`` set on a level replaces the inherited list
  - ``add`` appends missing adapters, then ``exclude`` removes by name
  - ``defaults`` and ``deduplication`` merge field by field
  - ``weights`` merge key by key, ``overrides`` per adapter key by key
  - timeouts replace when set
Only fields a level declares explicitly take part.
"""

import logging
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from arivu.contracts.federated_v1 import (
    DeduplicationConfig,
    ProfileDefaults,
    ResolvedProfile,
    SearchProfile,
)
from arivu.core.config import config
from arivu.core.errors import ProfileCycleError, ProfileNotFoundError, ProfileStoreError
from arivu.orchestrators.search.constants import AD_HOC_PROFILE_NAME

logger = logging.getLogger(__name__)


def _builtin(name: str, description: str, connectors: list[str], **kwargs: Any) -> SearchProfile:
    return SearchProfile(name=name, description=description, connectors=connectors, **kwargs)


BUILTIN_PROFILES: dict[str, SearchProfile] = {
    p.name: p
    for p in (
        _builtin(
            "research",
            "Academic research across multiple databases",
            ["pubmed", "arxiv", "semantic-scholar", "google-scholar"],
        ),
        _builtin(
            "enterprise",
            "Enterprise document and communication search",
            ["slack", "atlassian", "github"],
            defaults=ProfileDefaults(limit=20),
        ),
        _builtin(
            "social",
            "Social media and forum discussions",
            ["reddit", "hackernews"],
            defaults=ProfileDefaults(limit=15),
        ),
        _builtin(
            "code",
            "Code search across repositories",
            ["github"],
            defaults=ProfileDefaults(limit=25),
        ),
        _builtin(
            "web",
            "Web search using AI-powered search providers",
            ["perplexity-search", "exa-search", "tavily-search"],
        ),
        _builtin(
            "media",
            "Video and reference content search",
            ["youtube", "wikipedia"],
        ),
    )
}


def _unique(names: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


def _merge_fields(base: Any, level: Any) -> Any:
    """Copy of ``base`` with the fields ``level`` set explicitly."""
    update = {f: getattr(level, f) for f in level.model_fields_set}
    if not update:
        return base
    return base.model_copy(update=update, deep=True)


def flatten(chain: list[SearchProfile], name: str) -> ResolvedProfile:
    """Flatten a root-first inheritance chain into one ResolvedProfile."""
    connectors: list[str] = []
    defaults = ProfileDefaults()
    dedup = DeduplicationConfig()
    weights: dict[str, float] = {}
    overrides: dict[str, dict[str, Any]] = {}
    description: str | None = None
    timeout_ms = SearchProfile.model_fields["timeout_ms"].default
    global_timeout_ms = SearchProfile.model_fields["global_timeout_ms"].default

    for level in chain:
        declared = level.model_fields_set
        if "connectors" in declared or level.extends is None:
            connectors = _unique(level.connectors)
        for adapter in level.add:
            if adapter not in connectors:
                connectors.append(adapter)
        if level.exclude:
            excluded = set(level.exclude)
            connectors = [c for c in connectors if c not in excluded]

        if "description" in declared:
            description = level.description
        if "defaults" in declared:
            defaults = _merge_fields(defaults, level.defaults)
        if "deduplication" in declared:
            dedup = _merge_fields(dedup, level.deduplication)
        if "weights" in declared:
            weights.update(level.weights)
        if "overrides" in declared:
            for adapter, params in level.overrides.items():
                overrides[adapter] = {**overrides.get(adapter, {}), **params}
        if "timeout_ms" in declared:
            timeout_ms = level.timeout_ms
        if "global_timeout_ms" in declared:
            global_timeout_ms = level.global_timeout_ms

    return ResolvedProfile(
        name=name,
        description=description,
        chain=[p.name for p in chain],
        connectors=connectors,
        defaults=defaults,
        weights=weights,
        overrides=overrides,
        timeout_ms=timeout_ms,
        global_timeout_ms=global_timeout_ms,
        deduplication=dedup,
    )


class ProfileStore:
    """Built-in profiles plus the user's profiles file."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path is not None else config.profiles_file

    @property
    def path(self) -> Path:
        return self._path

    def load_all(self) -> dict[str, SearchProfile]:
        """User-defined profiles only. A missing file is an empty set."""
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProfileStoreError(f"Invalid YAML in {self._path}: {e}") from e
        except OSError as e:
            raise ProfileStoreError(f"Cannot read {self._path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ProfileStoreError(
                f"Profiles file {self._path} must be a mapping of name -> profile"
            )

        profiles: dict[str, SearchProfile] = {}
        for name, body in data.items():
            if body is None:
                body = {}
            if not isinstance(body, dict):
                raise ProfileStoreError(f"Profile '{name}' in {self._path} must be a mapping")
            try:
                profiles[str(name)] = SearchProfile.model_validate({**body, "name": str(name)})
            except ValidationError as e:
                raise ProfileStoreError(f"Invalid profile '{name}' in {self._path}: {e}") from e
        return profiles

    def load(self, name: str) -> SearchProfile | None:
        """User profile first, then built-in."""
        user = self.load_all().get(name)
        if user is not None:
            return user
        return BUILTIN_PROFILES.get(name)

    def save(self, profile: SearchProfile) -> None:
        profiles = self.load_all()
        profiles[profile.name] = profile
        self._write_all(profiles)

    def delete(self, name: str) -> bool:
        """Remove a user profile. Built-ins cannot be deleted."""
        profiles = self.load_all()
        if name not in profiles:
            return False
        del profiles[name]
        self._write_all(profiles)
        return True

    def list_all(self) -> list[SearchProfile]:
        profiles = dict(BUILTIN_PROFILES)
        profiles.update(self.load_all())
        return [profiles[name] for name in sorted(profiles)]

    @staticmethod
    def list_builtin_names() -> list[str]:
        return list(BUILTIN_PROFILES)

    def resolve_profile(self, name: str) -> ResolvedProfile:
        """Flatten ``name`` through its ``extends`` chain."""
        user = self.load_all()
        walked: list[SearchProfile] = []
        path: list[str] = []
        visited: set[str] = set()
        current: str | None = name
        while current is not None:
            if current in visited:
                raise ProfileCycleError([*path, current])
            profile = user.get(current)
            if profile is None:
                profile = BUILTIN_PROFILES.get(current)
            if profile is None:
                available = set(BUILTIN_PROFILES) | set(user)
                raise ProfileNotFoundError(current, sorted(available))
            visited.add(current)
            path.append(current)
            walked.append(profile)
            current = profile.extends

        walked.reverse()
        resolved = flatten(walked, name)
        logger.debug(
            "Profiles: resolved '%s' via %s -> %s",
            name,
            " -> ".join(resolved.chain),
            resolved.connectors,
        )
        return resolved

    def ad_hoc(self, adapters: list[str]) -> ResolvedProfile:
        """Engine defaults around an explicit adapter list."""
        names = _unique([a.strip() for a in adapters if a and a.strip()])
        return ResolvedProfile(
            name=AD_HOC_PROFILE_NAME,
            chain=[],
            connectors=names,
            ad_hoc=True,
        )

    def _write_all(self, profiles: dict[str, SearchProfile]) -> None:
        data = {
            name: p.model_dump(mode="json", exclude_unset=True, exclude={"name"})
            for name, p in sorted(profiles.items())
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise ProfileStoreError(f"Cannot write {self._path}: {e}") from e
        logger.info("Profiles: wrote %d user profiles to %s", len(profiles), self._path)
