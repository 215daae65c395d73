"""
Pytest configuration for cowork tests.

Why: Force AnyIO to use the asyncio backend (the code under test only
awaits asyncio-compatible calls) and keep ROBLE_* / COWORK_* variables from
the developer shell out of config tests.
"""
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cowork.identity.registry import RegistrySet  # noqa: E402
from cowork.tests.fakes import InMemoryRecordStore  # noqa: E402
from cowork.wiring import build_services_for_store  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_cowork_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "COWORK_ENV",
        "COWORK_CACHE_TTL_SECONDS",
        "COWORK_CACHE_POLICY",
        "ROBLE_BASE_URL",
        "ROBLE_PROJECT",
        "ROBLE_TIMEOUT_SECONDS",
        "ROBLE_ACCESS_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def services(store: InMemoryRecordStore):
    return build_services_for_store(store, registries=RegistrySet())
