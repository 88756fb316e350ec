"""
Test suite for health check endpoints.

System role: Verification of health HTTP API
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatrelay.api.routers.health import router
from chatrelay.boundary.db import get_async_db


def test_health_check_should_report_healthy() -> None:
    """Test basic health check needs no dependencies."""
    # Arrange
    app = FastAPI()
    app.include_router(router)

    # Act
    response = TestClient(app).get("/health")

    # Assert
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "message": "Server Healthy"}


def test_health_check_db_should_run_query(override_db) -> None:
    """Test database health check executes against the injected session."""
    # Arrange
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_async_db] = override_db

    # Act
    response = TestClient(app).get("/health/db")

    # Assert
    assert response.status_code == 200
    assert response.json()["message"] == "Database connection OK"
