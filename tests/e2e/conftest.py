from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from arivu.core.bootstrap import Runtime, build_runtime
from arivu.core.config import config


@pytest_asyncio.fixture
async def runtime() -> AsyncIterator[Runtime]:
    """Runtime wired from the user's real adapters file. e2e suites only."""
    if not config.adapters_file.exists():
        pytest.skip(f"no adapters file at {config.adapters_file}")
    instance = build_runtime()
    try:
        yield instance
    finally:
        await instance.close()
