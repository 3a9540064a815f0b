"""
Unit tests for backend/auth.py
"""

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from backend.auth import DEFAULT_API_USER, get_current_user, validate_api_key
from backend.settings import Settings, get_settings


@pytest.mark.unit
class TestValidateApiKey:
    """Tests for validate_api_key."""

    def test_plain_key_maps_to_default_user(self):
        assert validate_api_key("sk_test_abc", ["sk_test_abc"]) == DEFAULT_API_USER

    def test_key_with_user_suffix(self):
        assert validate_api_key("sk_test_abc:user_123", ["sk_test_abc"]) == "user_123"

    def test_invalid_key(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_api_key("sk_wrong:user_123", ["sk_test_abc"])
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid API key"

    def test_no_keys_configured(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_api_key("sk_test_abc", [])
        assert exc_info.value.status_code == 401


@pytest.fixture
def client():
    app = FastAPI()

    @app.get("/whoami")
    def whoami(user_id: str = Depends(get_current_user)):
        return {"user_id": user_id}

    app.dependency_overrides[get_settings] = lambda: Settings(
        environment="test", api_keys="sk_one, sk_two", _env_file=None
    )
    return TestClient(app)


@pytest.mark.unit
class TestGetCurrentUser:
    """Tests for the get_current_user dependency."""

    def test_missing_header(self, client):
        response = client.get("/whoami")
        assert response.status_code == 401
        assert "X-API-Key" in response.json()["detail"]

    def test_valid_key(self, client):
        response = client.get("/whoami", headers={"X-API-Key": "sk_two:user_9"})
        assert response.status_code == 200
        assert response.json() == {"user_id": "user_9"}

    def test_invalid_key(self, client):
        response = client.get("/whoami", headers={"X-API-Key": "sk_three"})
        assert response.status_code == 401
