"""Tests for YAML and environment configuration loading."""

import pytest
import yaml

from ai_service.core.config import ConfigManager, Environment

ENV_VARS = [
    "LOG_LEVEL",
    "LOGS_PATH",
    "REDIS_URL",
    "CACHE_TTL",
    "CACHE_ENABLED",
    "OPENAI_API_KEY",
    "API_HOST",
    "API_PORT",
]


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    (tmp_path / "base.yaml").write_text(
        yaml.dump(
            {
                "log_level": "INFO",
                "cache": {"default_ttl": 120},
                "metrics": {"unhealthy_error_rate": 20.0},
                "serving": {"max_concurrent_requests": 10},
            }
        )
    )
    (tmp_path / "staging.yaml").write_text(
        yaml.dump({"debug": False, "cache": {"cleanup_probability": 0.5}})
    )
    return tmp_path


class TestConfigManager:
    def test_defaults_without_files(self, tmp_path, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)

        config = ConfigManager(str(tmp_path)).load_config("development")

        assert config.cache.default_ttl == 300
        assert config.metrics.max_metrics_per_model == 10000
        assert config.serving.prediction_cache_ttl == 300
        assert config.environment == Environment.DEVELOPMENT

    def test_base_and_environment_files_are_merged(self, config_dir):
        config = ConfigManager(str(config_dir)).load_config("staging")

        assert config.environment == Environment.STAGING
        assert config.debug is False
        assert config.cache.default_ttl == 120
        assert config.cache.cleanup_probability == 0.5
        assert config.metrics.unhealthy_error_rate == 20.0
        assert config.metrics.degraded_error_rate == 5.0
        assert config.serving.max_concurrent_requests == 10

    def test_environment_variable_overrides(self, config_dir, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
        monkeypatch.setenv("CACHE_TTL", "45")
        monkeypatch.setenv("CACHE_ENABLED", "false")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("API_PORT", "9000")

        config = ConfigManager(str(config_dir)).load_config("staging")

        assert config.log_level == "DEBUG"
        assert config.cache.redis_url == "redis://cache:6379/1"
        assert config.cache.default_ttl == 45
        assert config.cache.enabled is False
        assert config.providers.openai_api_key == "sk-env"
        assert config.api.port == 9000

    def test_get_config_caches_loaded_config(self, config_dir):
        manager = ConfigManager(str(config_dir))
        assert manager.get_config() is manager.get_config()

    def test_save_config_round_trip(self, config_dir):
        manager = ConfigManager(str(config_dir))
        config = manager.load_config("staging")
        manager.save_config(config, "saved.yaml")

        saved = yaml.safe_load((config_dir / "saved.yaml").read_text())
        assert saved["environment"] == "staging"
        assert saved["cache"]["default_ttl"] == 120
