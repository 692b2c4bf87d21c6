import pytest
from fastapi.testclient import TestClient

import market_relay.main
from market_relay import config
from market_relay.config import ConfigError, Settings
from market_relay.main import create_app, run


def preflight(client, origin):
    return client.options(
        "/api/chat",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )


def test_index_serves_frontend(client):
    res = client.get("/")

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert "Market Relay" in res.text


def test_cors_rejects_unknown_origin(client):
    res = preflight(client, "http://evil.example")

    assert res.status_code == 400
    assert "access-control-allow-origin" not in res.headers


def test_cors_rejects_unknown_origin_on_simple_request(client):
    res = client.post("/api/chat", json={}, headers={"Origin": "http://evil.example"})

    assert "access-control-allow-origin" not in res.headers


@pytest.mark.parametrize(
    "origin",
    ["http://localhost:5500", "http://127.0.0.1:5501", "https://market-dash-git-main.vercel.app"],
)
def test_cors_accepts_allowed_origins(client, origin):
    res = preflight(client, origin)

    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == origin


def test_cors_accepts_configured_frontend_url():
    settings = Settings(gemini_api_key="test-key", frontend_url="https://markets.example.com")

    with TestClient(create_app(settings)) as client:
        res = preflight(client, "https://markets.example.com")

    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "https://markets.example.com"


def test_oversized_body_is_rejected(client, generate_content, monkeypatch):
    monkeypatch.setattr(market_relay.main, "MAX_BODY_BYTES", 64)

    res = client.post("/api/chat", json={"prompt": "x" * 200})

    assert res.status_code == 413
    assert "50 MB" in res.json()["error"]
    generate_content.assert_not_called()


def test_malformed_json_is_validation_error(client, generate_content):
    res = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})

    assert res.status_code == 400
    assert res.json()["error"].startswith("Invalid request body")
    generate_content.assert_not_called()


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in (
        "GEMINI_API_KEY", "VITE_GEMINI_API_KEY", "PORT", "HOST", "FRONTEND_URL",
        "DEV_ORIGINS", "PROVIDER_TIMEOUT", "GEMINI_API_BASE_URL", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_require_api_key(clean_env):
    with pytest.raises(ConfigError):
        Settings.from_env()


def test_settings_defaults(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "abc")

    settings = Settings.from_env()

    assert settings.port == 3000
    assert settings.provider_timeout == 60.0
    assert settings.allowed_origins == list(config.DEFAULT_DEV_ORIGINS)


def test_settings_read_environment(clean_env):
    clean_env.setenv("VITE_GEMINI_API_KEY", "from-vite")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("FRONTEND_URL", "https://markets.example.com")
    clean_env.setenv("DEV_ORIGINS", "http://localhost:4000, http://localhost:4001")

    settings = Settings.from_env()

    assert settings.gemini_api_key == "from-vite"
    assert settings.port == 8080
    assert settings.allowed_origins == [
        "http://localhost:4000",
        "http://localhost:4001",
        "https://markets.example.com",
    ]


def test_settings_reject_bad_port(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "abc")
    clean_env.setenv("PORT", "eighty")

    with pytest.raises(ConfigError, match="PORT"):
        Settings.from_env()


def test_settings_are_immutable():
    settings = Settings(gemini_api_key="abc")

    with pytest.raises(Exception):
        settings.port = 1


def test_run_exits_without_api_key(clean_env):
    with pytest.raises(SystemExit) as exc_info:
        run()

    assert exc_info.value.code == 1
