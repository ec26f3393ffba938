"""
FILE: tests/conftest.py
Shared fixtures for flow engine tests.
"""

from pathlib import Path

import pytest

from src.api.dependencies import reset_flow_runtime_for_tests
from src.core.flows import FlowEngine
from src.infrastructure.session import InMemorySession, RecordingNavigationSink
from tests.shared.flow_fakes import FakeTransactionGateway, make_profile


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if (
            _has_marker(item, "unit")
            or _has_marker(item, "integration")
            or _has_marker(item, "e2e")
        ):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        if "/tests/e2e/" in path:
            item.add_marker(pytest.mark.e2e)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture
def gateway() -> FakeTransactionGateway:
    return FakeTransactionGateway()


@pytest.fixture
def session() -> InMemorySession:
    return InMemorySession(profile=make_profile())


@pytest.fixture
def navigation() -> RecordingNavigationSink:
    return RecordingNavigationSink()


@pytest.fixture
def engine(gateway, session, navigation) -> FlowEngine:
    return FlowEngine(
        verification=gateway,
        quotes=gateway,
        commits=gateway,
        session=session,
        navigation=navigation,
    )


@pytest.fixture(autouse=True)
def flow_runtime_test_harness(monkeypatch: pytest.MonkeyPatch):
    """Keep every test on a fresh API runtime with no ambient credentials."""

    for name in ("BANKING_API_TOKEN", "BANKING_APP_ID", "BANKING_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("FLOW_API_ENABLED", raising=False)
    reset_flow_runtime_for_tests()
    yield
    reset_flow_runtime_for_tests()
