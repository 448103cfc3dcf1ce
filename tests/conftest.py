import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

import pytest

# Keep the suite away from the user's real profiles and event log. Must run
# before arivu.core.config is imported.
_SANDBOX = Path(tempfile.mkdtemp(prefix="arivu-tests-"))
os.environ.setdefault("ARIVU_LOGS_DIR", str(_SANDBOX / "logs"))
os.environ.setdefault("ARIVU_PROFILES_FILE", str(_SANDBOX / "profiles.yaml"))
os.environ.setdefault("ARIVU_ADAPTERS_FILE", str(_SANDBOX / "adapters.yaml"))


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration/e2e tests that require real adapters.",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: requires runtime services or user configuration"
    )
    config.addinivalue_line("markers", "e2e: end-to-end runtime tests")
    config.addinivalue_line("markers", "property: property-based deterministic tests")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: Sequence[pytest.Item],
) -> None:
    run_integration = config.getoption("--run-integration")
    skip_integration = pytest.mark.skip(
        reason="integration/e2e is opt-in; rerun with --run-integration"
    )

    for item in items:
        if "tests/e2e/" in item.nodeid:
            item.add_marker("integration")
            item.add_marker("e2e")
        if (
            item.get_closest_marker("integration") or item.get_closest_marker("e2e")
        ) and not run_integration:
            item.add_marker(skip_integration)
