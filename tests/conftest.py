"""
Pytest configuration

The API tests run the FastAPI app in-process through ``httpx.ASGITransport``.
Dependencies are overridden per test so each one gets a fresh history store,
recorder and a prober backed by ``httpx.MockTransport``.
"""
import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from latency_monitor.main import app
from latency_monitor.services import state
from latency_monitor.services.history import HistoryRecorder, HistoryStore
from latency_monitor.services.prober import Prober


def default_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=b"<html>ok</html>")


@pytest.fixture(autouse=True)
def reset_overrides():
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def history_store():
    return HistoryStore()


@pytest.fixture
def recorder(history_store):
    return HistoryRecorder(history_store)


@pytest.fixture
def upstream():
    """Mutable holder for the handler the fake upstream server uses."""
    return {"handler": default_handler}


@pytest_asyncio.fixture
async def api(history_store, recorder, upstream):
    prober = Prober(transport=httpx.MockTransport(lambda request: upstream["handler"](request)))

    app.dependency_overrides[state.get_prober] = lambda: prober
    app.dependency_overrides[state.get_history] = lambda: history_store
    app.dependency_overrides[state.get_recorder] = lambda: recorder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    await recorder.drain()
