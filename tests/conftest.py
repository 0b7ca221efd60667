import pytest
from fastapi.testclient import TestClient

from pacer.infrastructure.scheduler import VirtualScheduler
from pacer.main import app


@pytest.fixture()
def client() -> TestClient:
    """Provide a FastAPI test client."""
    return TestClient(app)


@pytest.fixture()
def scheduler() -> VirtualScheduler:
    """Provide a manually advanced clock starting at t=0."""
    return VirtualScheduler()
