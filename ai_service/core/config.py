"""
Configuration management system for different environments.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class Environment(Enum):
    """Environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


@dataclass
class CacheConfig:
    """Prediction cache configuration."""

    enabled: bool = True
    default_ttl: int = 300  # seconds
    cleanup_probability: float = 0.1
    redis_url: Optional[str] = None
    use_memory_fallback: bool = True


@dataclass
class MetricsConfig:
    """Metrics buffer and health threshold configuration."""

    max_metrics_per_model: int = 10000
    health_window_minutes: int = 5
    unhealthy_error_rate: float = 10.0  # percent
    degraded_error_rate: float = 5.0  # percent
    degraded_p95_latency_ms: float = 500.0


@dataclass
class ServingConfig:
    """Prediction orchestration configuration."""

    prediction_cache_ttl: int = 300  # seconds
    max_concurrent_requests: int = 100
    seed_default_models: bool = True

    # Circuit breaker
    circuit_breaker_enabled: bool = True
    failure_threshold: int = 5
    recovery_timeout: int = 60  # seconds
    half_open_max_calls: int = 3


@dataclass
class ProviderDefaults:
    """Defaults shared by the external prediction providers."""

    request_timeout_seconds: float = 30.0
    llm_timeout_seconds: float = 60.0
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4"
    openai_api_key: Optional[str] = None


@dataclass
class APIConfig:
    """API configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4
    timeout_seconds: int = 30


@dataclass
class Config:
    """Main configuration class."""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: str = "INFO"

    # Component configurations
    cache: CacheConfig = field(default_factory=CacheConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    serving: ServingConfig = field(default_factory=ServingConfig)
    providers: ProviderDefaults = field(default_factory=ProviderDefaults)
    api: APIConfig = field(default_factory=APIConfig)

    # Paths
    logs_path: str = "logs/"


class ConfigManager:
    """Configuration manager for loading and managing configurations."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.getenv("CONFIG_PATH", "config/")
        self._config: Optional[Config] = None

    def load_config(self, environment: Optional[str] = None) -> Config:
        """Load configuration for the specified environment."""
        env = environment or os.getenv("ENVIRONMENT", "development")

        # Load base configuration
        base_config = self._load_base_config()

        # Load environment-specific overrides
        env_config = self._load_environment_config(env)

        # Merge configurations
        merged_config = self._merge_configs(base_config, env_config)
        if any(env == member.value for member in Environment):
            merged_config.environment = Environment(env)

        # Apply environment variables
        final_config = self._apply_env_vars(merged_config)

        self._config = final_config
        return final_config

    def get_config(self) -> Config:
        """Get the current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def _load_base_config(self) -> Dict[str, Any]:
        """Load base configuration."""
        config_file = Path(self.config_path) / "base.yaml"
        if config_file.exists():
            with open(config_file, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def _load_environment_config(self, environment: str) -> Dict[str, Any]:
        """Load environment-specific configuration."""
        config_file = Path(self.config_path) / f"{environment}.yaml"
        if config_file.exists():
            with open(config_file, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Config:
        """Merge base and override configurations."""
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value

        # Convert to Config object
        config = Config()

        # Update fields if they exist in merged config
        for field_name, field_value in merged.items():
            if not hasattr(config, field_name):
                continue
            if isinstance(field_value, dict):
                # Handle nested configurations
                nested_config = getattr(config, field_name)
                for nested_key, nested_value in field_value.items():
                    if hasattr(nested_config, nested_key):
                        setattr(nested_config, nested_key, nested_value)
            elif field_name == "environment":
                config.environment = Environment(field_value)
            else:
                setattr(config, field_name, field_value)

        return config

    def _apply_env_vars(self, config: Config) -> Config:
        """Apply environment variable overrides."""
        if os.getenv("LOG_LEVEL"):
            config.log_level = os.getenv("LOG_LEVEL").upper()
        if os.getenv("LOGS_PATH"):
            config.logs_path = os.getenv("LOGS_PATH")

        # Cache overrides
        if os.getenv("REDIS_URL"):
            config.cache.redis_url = os.getenv("REDIS_URL")
        if os.getenv("CACHE_TTL"):
            config.cache.default_ttl = int(os.getenv("CACHE_TTL"))
        if os.getenv("CACHE_ENABLED"):
            config.cache.enabled = os.getenv("CACHE_ENABLED").lower() in (
                "1",
                "true",
                "yes",
            )

        # Provider overrides
        if os.getenv("OPENAI_API_KEY"):
            config.providers.openai_api_key = os.getenv("OPENAI_API_KEY")

        # API overrides
        if os.getenv("API_HOST"):
            config.api.host = os.getenv("API_HOST")
        if os.getenv("API_PORT"):
            config.api.port = int(os.getenv("API_PORT"))

        return config

    def save_config(self, config: Config, filename: str) -> None:
        """Save configuration to file."""
        config_dict = self._config_to_dict(config)
        config_file = Path(self.config_path) / filename

        # Ensure directory exists
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w") as f:
            yaml.dump(config_dict, f, default_flow_style=False)

    def _config_to_dict(self, config: Any) -> Dict[str, Any]:
        """Convert Config object to dictionary."""
        result = {}
        for field_name in config.__dataclass_fields__:
            field_value = getattr(config, field_name)
            if hasattr(field_value, "__dataclass_fields__"):
                # Handle nested dataclass
                result[field_name] = self._config_to_dict(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value
        return result


# Global configuration manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration."""
    return config_manager.get_config()


def load_config(environment: Optional[str] = None) -> Config:
    """Load configuration for the specified environment."""
    return config_manager.load_config(environment)
