from fastapi.testclient import TestClient

from api.main import app
from core.config import get_settings

client = TestClient(app)


def test_config_endpoint_masks_credentials(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "sk-should-not-leak")
    get_settings.cache_clear()
    try:
        response = client.get("/config")
    finally:
        get_settings.cache_clear()

    assert response.status_code == 200
    data = response.json()
    assert data["llm_api_key"] == "***"
    assert "sk-should-not-leak" not in response.text
    assert "default_primary_framework" in data


def test_frameworks_catalog():
    response = client.get("/frameworks")

    assert response.status_code == 200
    data = response.json()
    assert data["frameworks"]["china"] == "中华人民共和国法律"
    assert "en" in data["languages"]
