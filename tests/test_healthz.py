"""Health check tests for all Newsroom services."""
import pytest
from fastapi.testclient import TestClient


def test_generator_healthz():
    """Test generator service health check."""
    from newsroom.generation.app import app

    client = TestClient(app)
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["service"] == "generator"


def test_support_healthz():
    """Test support service health check."""
    from newsroom.support.app import app

    client = TestClient(app)
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["service"] == "support"


@pytest.mark.parametrize("module_path", [
    "newsroom.generation.app",
    "newsroom.support.app",
])
def test_service_root_endpoint(module_path):
    """Test root endpoint for all services."""
    module = __import__(module_path, fromlist=["app"])

    client = TestClient(module.app)
    response = client.get("/")

    assert response.status_code == 200
    assert "Newsroom" in response.json()["message"]
    assert response.json()["version"] == "0.1.0"
