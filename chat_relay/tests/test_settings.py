import pytest
from pydantic import ValidationError

from chat_relay.config.settings import DEFAULT_GREETING, Settings


def test_defaults(monkeypatch, tmp_path):
    for key in ("AUTOGEN_BACKEND_URL", "BACKEND_URL", "CHAT_PATH", "HTTP_TIMEOUT", "GREETING_TEXT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    cfg = Settings()
    assert cfg.backend_url == "http://localhost:8000"
    assert cfg.chat_path == "/api/chat"
    assert cfg.greeting_text == DEFAULT_GREETING
    assert cfg.transcript_dir is None


def test_backend_url_from_autogen_env(monkeypatch):
    monkeypatch.delenv("BACKEND_URL", raising=False)
    monkeypatch.setenv("AUTOGEN_BACKEND_URL", "https://agents.example.com/")
    cfg = Settings()
    assert cfg.backend_url == "https://agents.example.com"


def test_chat_path_gets_leading_slash():
    cfg = Settings(backend_url="http://b.test", chat_path="v1/chat")
    assert cfg.chat_path == "/v1/chat"


def test_yaml_config_file(monkeypatch, tmp_path):
    for key in ("AUTOGEN_BACKEND_URL", "BACKEND_URL", "HTTP_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    config = tmp_path / "relay.yaml"
    config.write_text("backend_url: http://yaml.test\nhttp_timeout: 12\n", encoding="utf-8")
    monkeypatch.setenv("CHAT_RELAY_CONFIG_FILE", str(config))
    cfg = Settings()
    assert cfg.backend_url == "http://yaml.test"
    assert cfg.http_timeout == 12.0


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        Settings(backend_url="ftp://nope")
    with pytest.raises(ValidationError):
        Settings(http_timeout=0.1)
