import io
import json
import sys
from collections.abc import Callable
from typing import Any

import pytest
import yaml

from arivu.core.bootstrap import Runtime, build_runtime
from arivu.core.config import config
from arivu.core.errors import AdapterConfigError
from arivu.core.logger import logger
from arivu.interfaces import cli
from arivu.orchestrators.resolver import PATTERN_TABLE, SmartResolver


@pytest.fixture(autouse=True)
def no_tty(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO())


@pytest.fixture
def use_runtime(monkeypatch, tmp_path, profiles_path) -> Callable[..., Runtime]:
    """Point the CLI at a runtime built from the given fake adapters."""

    def _use(*adapters: Any) -> Runtime:
        runtime = build_runtime(
            adapters_file=tmp_path / "adapters.yaml",
            profiles_file=profiles_path,
            extra_adapters=list(adapters),
        )
        monkeypatch.setattr(cli, "build_runtime", lambda *a, **kw: runtime)
        return runtime

    return _use


def run(argv: list[str], capsys) -> tuple[int, Any, str]:
    code = cli.main(argv)
    out, err = capsys.readouterr()
    return code, json.loads(out) if out.strip() else None, err


class TestFetch:
    def test_dry_run_lists_all_matches(self, use_runtime, capsys):
        use_runtime()
        code, data, _ = run(["fetch", "12345678", "--dry-run"], capsys)
        assert code == 0
        assert data["input"] == "12345678"
        assert [m["pattern_id"] for m in data["matches"]] == ["pubmed_id", "hackernews_id"]

    def test_no_match(self, use_runtime, capsys):
        use_runtime()
        code, data, err = run(["fetch", "just words"], capsys)
        assert code == 1
        assert data == {"input": "just words", "matches": []}
        assert "No adapter recognizes" in err

    def test_calls_best_match(self, use_runtime, adapter_factory, capsys):
        calls: list[tuple[str, dict[str, Any]]] = []
        use_runtime(adapter_factory("arxiv", {"title": "Attention"}, calls=calls))
        code, data, _ = run(["fetch", "https://arxiv.org/abs/1706.03762"], capsys)
        assert code == 0
        assert data["action"]["adapter"] == "arxiv"
        assert data["result"] == {"title": "Attention"}
        assert calls == [("get", {"id": "1706.03762"})]

    def test_pick_selects_lower_ranked_match(self, use_runtime, adapter_factory, capsys):
        calls: list[tuple[str, dict[str, Any]]] = []
        use_runtime(adapter_factory("hackernews", {"id": 12345678}, calls=calls))
        code, data, _ = run(["fetch", "12345678", "--pick", "2"], capsys)
        assert code == 0
        assert data["action"]["pattern_id"] == "hackernews_id"
        assert calls == [("get_post", {"id": "12345678"})]

    def test_pick_out_of_range(self, use_runtime, capsys):
        use_runtime()
        code, _, err = run(["fetch", "12345678", "--pick", "9"], capsys)
        assert code == 2
        assert "--pick must be between 1 and 2" in err

    def test_unregistered_adapter_is_an_error(self, use_runtime, capsys):
        use_runtime()
        code, data, err = run(["fetch", "PMID:12345678"], capsys)
        assert code == 2
        assert data is None
        assert "pubmed" in err


class TestFormats:
    def test_lists_every_pattern(self, use_runtime, capsys):
        use_runtime()
        code, data, _ = run(["formats"], capsys)
        assert code == 0
        assert [p["id"] for p in data] == [p.id for p in PATTERN_TABLE]
        assert {"id", "adapter", "operation", "priority", "description", "example"} <= set(data[0])


class TestSearch:
    @pytest.mark.parametrize("value", ["0", "-3", "ten"])
    def test_limit_must_be_positive(self, value, capsys):
        with pytest.raises(SystemExit) as exc:
            cli.build_parser().parse_args(["search", "q", "--limit", value])
        assert exc.value.code == 2
        assert "--limit" in capsys.readouterr().err

    def test_limit_is_parsed(self):
        args = cli.build_parser().parse_args(["search", "q", "--limit", "4"])
        assert args.limit == 4

    def test_ad_hoc_search(self, use_runtime, adapter_factory, capsys):
        use_runtime(
            adapter_factory("arxiv", {"results": [{"id": "1", "title": "A"}]}),
            adapter_factory("pubmed", {"results": [{"pmid": "2", "title": "B"}]}),
        )
        code, data, _ = run(["search", "crispr", "-a", "arxiv, pubmed", "--merge", "interleaved"], capsys)
        assert code == 0
        assert data["profile"] is None
        assert data["completed"] == ["arxiv", "pubmed"]
        assert data["results"]["type"] == "interleaved"
        assert [r["id"] for r in data["results"]["results"]] == ["arXiv:1", "PMID:2"]
        assert data["results"]["results"][0]["_federation"]["score"] == 1.0

    def test_all_sources_failed(self, use_runtime, adapter_factory, capsys):
        use_runtime(adapter_factory("arxiv", error=RuntimeError("down")))
        code, data, _ = run(["search", "q", "-a", "arxiv"], capsys)
        assert code == 3
        assert data["errors"][0]["error"] == "down"
        assert data["partial"] is True

    def test_unknown_profile(self, use_runtime, capsys):
        use_runtime()
        code, _, err = run(["search", "q", "-p", "nope"], capsys)
        assert code == 2
        assert "Profile 'nope' not found" in err

    def test_profile_and_adapters_are_exclusive(self, use_runtime, capsys):
        use_runtime()
        with pytest.raises(SystemExit):
            cli.main(["search", "q", "-p", "research", "-a", "arxiv"])


class TestProfiles:
    def test_list_marks_origin(self, use_runtime, profiles_path, capsys):
        profiles_path.write_text(
            yaml.safe_dump({"research": {"connectors": ["arxiv"]}, "mine": {"extends": "social"}}),
            encoding="utf-8",
        )
        use_runtime()
        code, data, _ = run(["profiles", "list"], capsys)
        assert code == 0
        by_name = {p["name"]: p for p in data}
        assert by_name["research"]["origin"] == "user"
        assert by_name["research"]["overrides_builtin"] is True
        assert by_name["mine"]["origin"] == "user"
        assert by_name["mine"]["overrides_builtin"] is False
        assert by_name["code"]["origin"] == "builtin"

    def test_show_and_resolve(self, use_runtime, capsys):
        use_runtime()
        code, data, _ = run(["profiles", "show", "social"], capsys)
        assert code == 0
        assert data["connectors"] == ["reddit", "hackernews"]

        code, data, _ = run(["profiles", "resolve", "social"], capsys)
        assert code == 0
        assert data["chain"] == ["social"]
        assert data["defaults"]["limit"] == 15

    def test_show_unknown(self, use_runtime, capsys):
        use_runtime()
        code, _, err = run(["profiles", "show", "nope"], capsys)
        assert code == 2
        assert "not found" in err

    def test_name_required(self, use_runtime, capsys):
        use_runtime()
        code, _, err = run(["profiles", "resolve"], capsys)
        assert code == 2
        assert "needs a profile name" in err

    def test_delete(self, use_runtime, profiles_path, capsys):
        profiles_path.write_text(yaml.safe_dump({"mine": {"connectors": ["arxiv"]}}), encoding="utf-8")
        use_runtime()
        code, data, _ = run(["profiles", "delete", "mine"], capsys)
        assert (code, data) == (0, {"name": "mine", "deleted": True})
        code, data, _ = run(["profiles", "delete", "mine"], capsys)
        assert (code, data) == (1, {"name": "mine", "deleted": False})


class TestStartup:
    def test_bad_adapters_file(self, monkeypatch, capsys):
        def broken(*args: Any, **kwargs: Any) -> Runtime:
            raise AdapterConfigError("Invalid adapter 'x'")

        monkeypatch.setattr(cli, "build_runtime", broken)
        assert cli.main(["formats"]) == 2
        assert "Invalid adapter 'x'" in capsys.readouterr().err

    def test_event_log_closed_after_command(self, use_runtime, capsys):
        use_runtime()
        code, _, _ = run(["fetch", "12345678", "--dry-run"], capsys)
        assert code == 0
        assert logger._log_file_handle is None
        assert "RESOLVE" in logger.log_file.read_text(encoding="utf-8")

    def test_invalid_config(self, monkeypatch, capsys):
        monkeypatch.setattr(config, "log_level", "CHATTY")
        assert cli.main(["formats"]) == 2
        assert "Unknown log level: CHATTY" in capsys.readouterr().err


class TestChooseAction:
    @pytest.fixture
    def actions(self):
        return SmartResolver().resolve_all("12345678")

    def test_first_match_when_not_interactive(self, actions):
        assert cli.choose_action(actions, interactive=False) is actions[0]

    def test_pick(self, actions):
        assert cli.choose_action(actions, pick=2) is actions[1]
        with pytest.raises(ValueError):
            cli.choose_action(actions, pick=0)

    def test_prompt(self, actions, monkeypatch, capsys):
        answers = iter(["7", "2"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        assert cli.choose_action(actions, interactive=True) is actions[1]
        err = capsys.readouterr().err
        assert "pubmed.get_article" in err
        assert "Invalid choice" in err

    def test_prompt_defaults_to_first(self, actions, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt="": "")
        assert cli.choose_action(actions, interactive=True) is actions[0]
