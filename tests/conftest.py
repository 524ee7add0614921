import pytest
import requests
import structlog


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    """Fail loudly if a test reaches for a real HTTP connection."""

    def _blocked(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Network access attempted in tests: {method} {url}")

    monkeypatch.setattr(requests.Session, "request", _blocked)
    yield


@pytest.fixture(autouse=True)
def clean_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture()
def waits():
    return []
