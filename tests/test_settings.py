"""
Tests for environment-driven settings.
"""
from config.settings import Settings


def test_settings_read_env_file_config():
    assert Settings.model_config["env_file"] == ".env"
    assert Settings.model_config["env_file_encoding"] == "utf-8"


def test_settings_overridden_by_environment(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("BATCH_SIZE", "3")

    overridden = Settings()

    assert overridden.cache_ttl_seconds == 60
    assert overridden.batch_size == 3
    assert overridden.id_space_size == 1025
