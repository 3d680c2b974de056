"""
Tests for configuration loading.
"""

import pytest

from chatmux.config import DEFAULT_CHAT_MODEL, ClientConfig, load_key

ENV_VARS = (
    "CHAT_API_KEY", "IMAGE_API_KEY", "VISION_API_KEY", "WEATHER_API_KEY",
    "CHAT_BASE_URL", "CHAT_MODEL", "CHAT_TEMPERATURE", "IMAGE_BASE_URL",
    "HTTP_RETRY_ATTEMPTS", "DEBUG",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestLoadKey:

    def test_none_path(self):
        assert load_key(None) is None

    def test_env_overrides_file(self, clean_env, monkeypatch):
        key_file = clean_env / "chat.key"
        key_file.write_text("from-file\n")
        monkeypatch.setenv("CHAT_API_KEY", " from-env ")
        assert load_key(str(key_file)) == "from-env"

    def test_file_contents(self, clean_env):
        key_file = clean_env / "weather.key"
        key_file.write_text("  abc123\n")
        assert load_key(str(key_file)) == "abc123"

    def test_missing_or_empty_file(self, clean_env):
        assert load_key(str(clean_env / "vision.key")) is None
        (clean_env / "image.key").write_text("   ")
        assert load_key(str(clean_env / "image.key")) is None


class TestClientConfig:

    def test_defaults_from_empty_env(self, clean_env):
        config = ClientConfig.from_env()

        assert config.chat_api_key is None
        assert config.chat_model == DEFAULT_CHAT_MODEL
        assert config.weather_location == "New York"
        assert config.debug is False

    def test_env_values(self, clean_env, monkeypatch):
        monkeypatch.setenv("CHAT_BASE_URL", "https://llm.test/v1/")
        monkeypatch.setenv("CHAT_TEMPERATURE", "0.2")
        monkeypatch.setenv("HTTP_RETRY_ATTEMPTS", "5")
        monkeypatch.setenv("CHAT_API_KEY", "k")
        monkeypatch.setenv("DEBUG", "true")
        config = ClientConfig.from_env()

        assert config.chat_completions_url == "https://llm.test/v1/chat/completions"
        assert config.image_generations_url == "https://llm.test/v1/images/generations"
        assert config.temperature == 0.2
        assert config.http_retry_attempts == 5
        assert config.image_api_key == "k"
        assert config.debug is True

    def test_key_files_in_config_directory(self, clean_env):
        (clean_env / "config").mkdir()
        (clean_env / "config" / "vision.key").write_text("vision-secret")
        assert ClientConfig.from_env().vision_api_key == "vision-secret"

    def test_invalid_number(self, clean_env, monkeypatch):
        monkeypatch.setenv("HTTP_RETRY_ATTEMPTS", "many")
        with pytest.raises(ValueError):
            ClientConfig.from_env()

    def test_with_overrides_is_a_copy(self):
        base = ClientConfig()
        changed = base.with_overrides(max_tokens=10)
        assert changed.max_tokens == 10
        assert base.max_tokens == 1024
