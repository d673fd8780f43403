# conftest.py
from __future__ import annotations

import uuid

import pytest
from prometheus_client import CollectorRegistry

from loadkit.core.config import LoaderConfig
from loadkit.core.logging import configure_from_env, enable_stream_logging, get_logger, log_context
from loadkit.core.time import ManualClock
from loadkit.manager import LibraryManager
from loadkit.observability.metrics import LoaderMetrics
from tests.helpers import FakeDocument, FakeWindow


def pytest_addoption(parser):
    parser.addoption(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit loadkit logs in JSON format during tests",
    )


@pytest.fixture(scope="session", autouse=True)
def _configure_loadkit_logging(request):
    if not configure_from_env():
        enable_stream_logging("DEBUG", json_output=request.config.getoption("--log-json"))


@pytest.fixture(scope="session")
def session_run_id():
    return uuid.uuid4().hex[:8]


@pytest.fixture(autouse=True)
def _test_log_context(request, session_run_id):
    log = get_logger("test")
    with log_context(pytest_nodeid=request.node.nodeid, test=request.node.name, test_run=session_run_id):
        log.debug("pytest.test.start", event="pytest.test.start")
        yield


# ───────────────────────── Loader fixtures ─────────────────────────


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def metrics() -> LoaderMetrics:
    """Metrics bound to a private registry so counters start at zero per test."""
    return LoaderMetrics(registry=CollectorRegistry())


@pytest.fixture
def root() -> FakeWindow:
    return FakeWindow()


@pytest.fixture
def document(root) -> FakeDocument:
    return FakeDocument(root=root)


@pytest.fixture
def make_manager(document, root, clock, metrics):
    """Build a LibraryManager over the fake document for a given catalog."""

    def _make(catalog, *, config: LoaderConfig | None = None, **kwargs):
        return LibraryManager(
            catalog, document, root=root, clock=clock, metrics=metrics, config=config, **kwargs
        )

    return _make
