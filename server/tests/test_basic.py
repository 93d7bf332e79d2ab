"""
Simple basic tests for the API
"""
from datetime import date, datetime
from enum import Enum

from helpers.DateTimeSerializer import DateTimeSerializerVisitor


def test_health_check(client):
    """Test the health check endpoint"""
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


def test_protected_endpoint_requires_auth(client):
    """Test that protected endpoints require authentication"""
    response = client.get("/api/user/profile")
    assert response.status_code == 401


def test_participations_require_auth(client):
    response = client.get("/api/participations")
    assert response.status_code == 401


def test_create_team_requires_auth(client):
    """Test that creating a team requires authentication"""
    response = client.post("/api/teams", json={"event_id": "e1", "name": "Test Team"})
    assert response.status_code == 401


def test_invalid_endpoint_returns_404(client):
    """Test that invalid endpoints return 404"""
    response = client.get("/api/nonexistent")
    assert response.status_code == 404


def test_datetime_serialization():
    """Test that datetime objects are properly serialized"""
    visitor = DateTimeSerializerVisitor()

    dt = datetime(2024, 1, 1, 12, 30, 45)
    result = visitor.visit(dt)
    assert result == "2024-01-01T12:30:45"

    data = {"name": "test", "created_at": dt, "event_date": date(2024, 6, 15)}
    result = visitor.visit(data)
    assert result["created_at"] == "2024-01-01T12:30:45"
    assert result["event_date"] == "2024-06-15"

    data_list = [dt, "string", 123]
    result = visitor.visit(data_list)
    assert isinstance(result[0], str)
    assert result[1] == "string"
    assert result[2] == 123


def test_nested_values_serialization():
    """Nested dates and enums become plain JSON values"""
    class Color(str, Enum):
        RED = "red"

    visitor = DateTimeSerializerVisitor()
    data = {
        "metadata": {
            "created": datetime(2024, 1, 1),
            "tags": [Color.RED],
        }
    }

    result = visitor.visit(data)
    assert isinstance(result["metadata"]["created"], str)
    assert result["metadata"]["tags"] == ["red"]
