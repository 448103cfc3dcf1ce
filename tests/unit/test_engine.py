import asyncio
from typing import Any

import pytest

from arivu.contracts.federated_v1 import (
    GroupedResults,
    InterleavedResults,
    MergeMode,
    SourceErrorKind,
)
from arivu.core.config import config
from arivu.core.errors import (
    NoAdaptersSelectedError,
    ProfileCycleError,
    ProfileNotFoundError,
    ProfileStoreError,
)
from arivu.orchestrators.search.interface import CallableAdapter
from arivu.orchestrators.search.orchestrator import build_adapter_arguments
from arivu.orchestrators.search.profiles import ProfileStore


def papers(prefix: str, n: int, **extra: Any) -> dict[str, Any]:
    return {
        "results": [
            {"id": f"{prefix}{i}", "title": f"{prefix} paper {i}", "url": f"https://ex.org/{prefix}/{i}"}
            for i in range(1, n + 1)
        ],
        **extra,
    }


class TestPartialResults:
    @pytest.mark.asyncio
    async def test_slow_source_times_out_while_others_complete(
        self, adapter_factory, make_engine, write_profiles
    ):
        store = write_profiles(
            {"research": {"connectors": ["arxiv", "pubmed"], "timeout_ms": 100}}
        )
        engine = make_engine(
            adapter_factory("arxiv", papers("2301.", 3)),
            adapter_factory("pubmed", papers("p", 2), delay=2.0),
            store=store,
        )

        result = await engine.search("CRISPR gene editing", profile="research")

        assert result.query == "CRISPR gene editing"
        assert result.profile == "research"
        assert result.merge_mode == MergeMode.GROUPED
        assert result.completed == ["arxiv"]
        assert result.partial is True
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.source == "pubmed"
        assert error.error == "timeout after 100ms"
        assert error.kind == SourceErrorKind.TIMEOUT
        assert error.is_timeout is True
        assert isinstance(result.results, GroupedResults)
        assert [b.source for b in result.results.sources] == ["arxiv"]
        assert result.total_count == 3
        assert [r.id for r in result.all_results()] == [
            "arXiv:2301.1",
            "arXiv:2301.2",
            "arXiv:2301.3",
        ]
        assert result.all_failed() is False

    @pytest.mark.asyncio
    async def test_global_deadline_cancels_stragglers(
        self, adapter_factory, make_engine, write_profiles
    ):
        store = write_profiles(
            {
                "mix": {
                    "connectors": ["fast", "slow"],
                    "timeout_ms": 10000,
                    "global_timeout_ms": 100,
                }
            }
        )
        engine = make_engine(
            adapter_factory("fast", papers("f", 1)),
            adapter_factory("slow", papers("s", 1), delay=5.0),
            store=store,
        )

        result = await engine.search("q", profile="mix")

        assert result.completed == ["fast"]
        assert [(e.source, e.error, e.kind) for e in result.errors] == [
            ("slow", "timeout after 100ms (global)", SourceErrorKind.TIMEOUT)
        ]

    @pytest.mark.asyncio
    async def test_failures_become_errors(self, adapter_factory, make_engine):
        engine = make_engine(
            adapter_factory("ok", papers("o", 1)),
            adapter_factory("boom", error=RuntimeError("connection reset")),
            adapter_factory("quota", {"success": False, "error": "rate limited"}),
            adapter_factory("junk", "plain text"),
        )

        result = await engine.search("q", adapters=["ok", "boom", "quota", "junk"])

        assert result.profile is None
        assert result.completed == ["ok"]
        errors = {e.source: e for e in result.errors}
        assert list(errors) == ["boom", "quota", "junk"]
        assert errors["boom"].error == "connection reset"
        assert errors["quota"].error == "rate limited"
        assert errors["junk"].error.startswith("malformed payload")
        assert all(e.kind == SourceErrorKind.ADAPTER_FAILURE for e in errors.values())
        assert result.partial is True

    @pytest.mark.asyncio
    async def test_unregistered_adapter_is_a_source_error(self, adapter_factory, make_engine):
        engine = make_engine(adapter_factory("arxiv", papers("a", 1)))

        result = await engine.search("q", adapters=["arxiv", "ghost"])

        assert result.completed == ["arxiv"]
        assert result.errors[0].source == "ghost"
        assert "not registered" in result.errors[0].error

    @pytest.mark.asyncio
    async def test_all_sources_failing_still_returns(self, adapter_factory, make_engine):
        engine = make_engine(adapter_factory("a", error=ValueError("bad")))

        result = await engine.search("q", adapters=["a"])

        assert result.all_failed() is True
        assert result.total_count == 0
        assert result.all_results() == []


class TestSelection:
    @pytest.mark.asyncio
    async def test_zero_results_is_success(self, adapter_factory, make_engine):
        engine = make_engine(adapter_factory("arxiv", {"results": [], "total_results": 0}))

        result = await engine.search("nothing matches", adapters=["arxiv"])

        assert result.completed == ["arxiv"]
        assert result.errors == []
        assert result.partial is False
        assert result.total_count == 0
        bucket = result.results.sources[0]
        assert bucket.count == 0
        assert bucket.total_available == 0

    @pytest.mark.asyncio
    async def test_unknown_profile_raises(self, make_engine):
        with pytest.raises(ProfileNotFoundError):
            await make_engine().search("q", profile="does-not-exist")

    @pytest.mark.asyncio
    async def test_cyclic_profile_raises(self, make_engine, write_profiles):
        store = write_profiles({"a": {"extends": "b"}, "b": {"extends": "a"}})
        with pytest.raises(ProfileCycleError):
            await make_engine(store=store).search("q", profile="a")

    @pytest.mark.asyncio
    async def test_malformed_override_limit_fails_before_dispatch(
        self, adapter_factory, make_engine, write_profiles
    ):
        calls: list[tuple[str, dict[str, Any]]] = []
        store = write_profiles(
            {"p": {"connectors": ["a", "b"], "overrides": {"a": {"limit": "ten"}}}}
        )
        engine = make_engine(
            adapter_factory("a", calls=calls),
            adapter_factory("b", calls=calls),
            store=store,
        )
        with pytest.raises(ProfileStoreError, match="overrides.a.limit"):
            await engine.search("q", profile="p")
        assert calls == []

    @pytest.mark.asyncio
    async def test_empty_adapter_list_raises(self, make_engine):
        with pytest.raises(NoAdaptersSelectedError):
            await make_engine().search("q", adapters=[])

    @pytest.mark.asyncio
    async def test_profile_excluding_everything_raises(self, make_engine, write_profiles):
        store = write_profiles({"none": {"extends": "code", "exclude": ["github"]}})
        with pytest.raises(NoAdaptersSelectedError) as exc:
            await make_engine(store=store).search("q", profile="none")
        assert exc.value.profile == "none"

    @pytest.mark.asyncio
    async def test_profile_and_adapters_are_exclusive(self, make_engine):
        with pytest.raises(ValueError):
            await make_engine().search("q", profile="research", adapters=["arxiv"])

    @pytest.mark.asyncio
    async def test_default_profile_from_config(
        self, adapter_factory, make_engine, write_profiles, monkeypatch
    ):
        monkeypatch.setattr(config, "default_profile", "mine")
        store = write_profiles({"mine": {"connectors": ["arxiv"]}})
        engine = make_engine(adapter_factory("arxiv", papers("a", 1)), store=store)

        result = await engine.search("q")

        assert result.profile == "mine"
        assert result.completed == ["arxiv"]

    @pytest.mark.asyncio
    async def test_completed_follows_declaration_order(self, adapter_factory, make_engine):
        engine = make_engine(
            adapter_factory("first", papers("a", 1), delay=0.05),
            adapter_factory("second", papers("b", 1)),
        )

        result = await engine.search("q", adapters=["first", "second"])

        assert result.completed == ["first", "second"]
        assert [b.source for b in result.results.sources] == ["first", "second"]


class TestArguments:
    def test_build_adapter_arguments_precedence(self, write_profiles):
        store = write_profiles(
            {
                "p": {
                    "connectors": ["arxiv", "pubmed"],
                    "defaults": {"limit": 5, "response_format": "detailed"},
                    "overrides": {
                        "pubmed": {"limit": 2, "sort": "date", "query": "ignored"},
                    },
                }
            }
        )
        resolved = store.resolve_profile("p")

        assert build_adapter_arguments(resolved, "arxiv", "q") == {
            "query": "q",
            "limit": 5,
            "response_format": "detailed",
        }
        assert build_adapter_arguments(resolved, "arxiv", "q", limit=7)["limit"] == 7
        assert build_adapter_arguments(resolved, "pubmed", "q", limit=7) == {
            "query": "q",
            "limit": 2,
            "response_format": "detailed",
            "sort": "date",
        }

    @pytest.mark.asyncio
    async def test_adapters_receive_shaped_arguments(
        self, adapter_factory, make_engine, write_profiles
    ):
        arxiv_calls: list[tuple[str, dict[str, Any]]] = []
        pubmed_calls: list[tuple[str, dict[str, Any]]] = []
        store = write_profiles(
            {
                "p": {
                    "connectors": ["arxiv", "pubmed"],
                    "overrides": {"pubmed": {"response_format": "detailed"}},
                }
            }
        )
        engine = make_engine(
            adapter_factory("arxiv", calls=arxiv_calls),
            adapter_factory("pubmed", calls=pubmed_calls),
            store=store,
        )

        await engine.search("crispr", profile="p", limit=3)

        assert arxiv_calls == [
            ("search", {"query": "crispr", "limit": 3, "response_format": "concise"})
        ]
        assert pubmed_calls == [
            ("search", {"query": "crispr", "limit": 3, "response_format": "detailed"})
        ]

    @pytest.mark.asyncio
    async def test_custom_search_operation(self, make_engine):
        seen: list[str] = []

        async def call(operation: str, arguments: dict[str, Any]) -> Any:
            seen.append(operation)
            return {"results": []}

        engine = make_engine(CallableAdapter("wiki", call, search_operation="search_pages"))
        await engine.search("q", adapters=["wiki"])
        assert seen == ["search_pages"]


class TestMergeAndDedup:
    @pytest.mark.asyncio
    async def test_interleaved_with_weights(self, adapter_factory, make_engine, write_profiles):
        store = write_profiles(
            {
                "w": {
                    "connectors": ["arxiv", "pubmed"],
                    "weights": {"pubmed": 3.0},
                    "defaults": {"merge_mode": "interleaved"},
                }
            }
        )
        engine = make_engine(
            adapter_factory("arxiv", papers("a", 2)),
            adapter_factory("pubmed", papers("p", 2)),
            store=store,
        )

        result = await engine.search("q", profile="w")

        assert result.merge_mode == MergeMode.INTERLEAVED
        assert isinstance(result.results, InterleavedResults)
        ranked = result.results.results
        assert [r.source for r in ranked] == ["pubmed", "pubmed", "arxiv", "arxiv"]
        assert [r.federation.score for r in ranked] == [3.0, 1.5, 1.0, 0.5]

    @pytest.mark.asyncio
    async def test_merge_mode_argument_overrides_profile(self, adapter_factory, make_engine):
        engine = make_engine(adapter_factory("a", papers("a", 1)))
        result = await engine.search("q", adapters=["a"], merge_mode="interleaved")
        assert result.merge_mode == MergeMode.INTERLEAVED

    @pytest.mark.asyncio
    async def test_profile_deduplication(self, adapter_factory, make_engine, write_profiles):
        shared = {"id": "x", "title": "Shared", "url": "https://ex.org/shared"}
        store = write_profiles(
            {
                "d": {
                    "connectors": ["arxiv", "pubmed"],
                    "deduplication": {"enabled": True, "prefer": ["pubmed"]},
                }
            }
        )
        engine = make_engine(
            adapter_factory("arxiv", {"results": [shared]}),
            adapter_factory("pubmed", {"results": [shared, {"id": "y", "title": "Own"}]}),
            store=store,
        )

        result = await engine.search("q", profile="d")

        assert result.duplicates_removed == 1
        assert result.total_count == 2
        assert [r.source for r in result.all_results()] == ["pubmed", "pubmed"]

    @pytest.mark.asyncio
    async def test_json_uses_federation_alias(self, adapter_factory, make_engine):
        engine = make_engine(adapter_factory("arxiv", papers("a", 1)))

        data = (await engine.search("q", adapters=["arxiv"])).to_json_dict()

        hit = data["results"]["sources"][0]["results"][0]
        assert hit["_federation"] == {"source_rank": 1, "weight": 1.0, "score": None}
        assert "federation" not in hit
        assert data["results"]["type"] == "grouped"
        assert data["merge_mode"] == "grouped"
        assert data["partial"] is False


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrency_is_capped(self, make_engine):
        running = 0
        peak = 0

        async def call(operation: str, arguments: dict[str, Any]) -> Any:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.02)
            running -= 1
            return {"results": []}

        names = [f"src{i}" for i in range(6)]
        engine = make_engine(*(CallableAdapter(n, call) for n in names), max_concurrency=2)

        result = await engine.search("q", adapters=names)

        assert result.completed == names
        assert peak == 2

    def test_profiles_property(self, make_engine, profiles_path):
        store = ProfileStore(profiles_path)
        assert make_engine(store=store).profiles is store
