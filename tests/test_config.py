import pytest

from shopping_assistant.config import BASE_DIR, load_settings


def test_defaults(monkeypatch):
    for name in ("CATALOG_PATH", "SESSIONS_PATH", "MAX_SESSIONS", "RESPONSE_DELAY_MIN", "RESPONSE_DELAY_MAX", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.catalog_path == BASE_DIR / "data" / "products.json"
    assert settings.sessions_path is None
    assert settings.max_sessions == 0
    assert settings.response_delay_min == 1.0
    assert settings.response_delay_max == 3.0
    assert settings.response_delay_max > 0
    assert settings.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SESSIONS_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("MAX_SESSIONS", "5")
    monkeypatch.setenv("RESPONSE_DELAY_MAX", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings = load_settings()
    assert settings.sessions_path == tmp_path / "s.json"
    assert settings.max_sessions == 5
    assert settings.response_delay_max == 0.0
    assert settings.log_level == "DEBUG"


def test_invalid_number_raises(monkeypatch):
    monkeypatch.setenv("MAX_SESSIONS", "many")
    with pytest.raises(ValueError):
        load_settings()
