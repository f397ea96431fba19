from __future__ import annotations

import os
from pathlib import Path

import pytest


TEST_PROMPTS_FILE = Path(__file__).resolve().parent / "prompts" / "prompts.txt"


@pytest.fixture(scope="session", autouse=True)
def _init_catalog_from_test_fixtures() -> None:
    """Initialize the prompt catalog from `tests/prompts` and forbid the built-in fallback.

    Point CHRONICLE_PROMPTS_FILE at the fixture too, so the app startup hook loads
    the same file if the cache gets reset.
    """

    os.environ["CHRONICLE_STRICT_PROMPTS"] = "1"
    os.environ["CHRONICLE_PROMPTS_FILE"] = str(TEST_PROMPTS_FILE)

    from chronicle.catalog.singleton import init_catalog, reset_catalog_for_tests

    reset_catalog_for_tests()
    init_catalog(path=TEST_PROMPTS_FILE)


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to a fresh fakeredis instance."""

    from collections.abc import Generator

    import fakeredis
    from fastapi.testclient import TestClient

    from chronicle.api.deps import get_redis
    from chronicle.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
