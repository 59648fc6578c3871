"""Configuration management for the OpenLore client."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

API_URL_ENV = "OPENLORE_API_URL"
STATE_PATH_ENV = "OPENLORE_STATE_PATH"


class Configuration:
    """Manages configuration and environment variables for the OpenLore client."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables.

        Args:
            config_path: Optional YAML file to load instead of the bundled
                ``config.yaml``.
        """
        self.load_env()
        self._config = self._load_yaml_config(config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self, config_path: str | None) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if config_path is None:
            config_path = os.path.join(os.path.dirname(__file__), "config.yaml")
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Configuration":
        """Build a configuration from an in-memory dictionary."""
        instance = cls.__new__(cls)
        cls.load_env()
        instance._config = config
        return instance

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_api_config(self) -> dict[str, Any]:
        """Get backend API configuration.

        ``OPENLORE_API_URL`` overrides ``api.base_url`` when set.

        Returns:
            API configuration dictionary with a ``base_url`` key.

        Raises:
            ValueError: If no base URL is configured.
        """
        api_config = dict(self._config.get("api", {}))
        env_url = os.getenv(API_URL_ENV)
        if env_url:
            api_config["base_url"] = env_url

        base_url = api_config.get("base_url")
        if not base_url:
            raise ValueError(
                "api.base_url must be explicitly configured in config.yaml "
                f"or through the {API_URL_ENV} environment variable"
            )
        api_config["base_url"] = base_url.rstrip("/")
        return api_config

    def get_http_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required HTTP client parameters are missing or invalid.
        """
        http_config = self._config.get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout",
            "max_connections", "max_keepalive",
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured in config.yaml"
                )

        for key in ["connect_timeout", "read_timeout", "write_timeout", "pool_timeout"]:
            if http_config[key] <= 0:
                raise ValueError(f"http_client.{key} must be positive")

        max_conn = http_config["max_connections"]
        if max_conn < 1:
            raise ValueError("http_client.max_connections must be at least 1")
        if http_config["max_keepalive"] > max_conn:
            raise ValueError("http_client.max_keepalive must be <= max_connections")

        return http_config

    def get_stream_config(self) -> dict[str, Any]:
        """Get chat streaming configuration.

        Raises:
            ValueError: If the stream path or chunk size is missing or invalid.
        """
        stream_config = self._config.get("stream", {})
        for key in ["path", "read_chunk_size"]:
            if key not in stream_config:
                raise ValueError(
                    f"stream.{key} must be explicitly configured in config.yaml"
                )

        if not str(stream_config["path"]).startswith("/"):
            raise ValueError("stream.path must start with '/'")
        chunk_size = stream_config["read_chunk_size"]
        if not isinstance(chunk_size, int) or chunk_size < 1:
            raise ValueError("stream.read_chunk_size must be a positive integer")

        return stream_config

    def get_state_config(self) -> dict[str, Any]:
        """Get local state persistence configuration.

        ``OPENLORE_STATE_PATH`` overrides ``state.path`` when set. The path is
        returned with ``~`` expanded.
        """
        state_config = dict(self._config.get("state", {}))
        env_path = os.getenv(STATE_PATH_ENV)
        if env_path:
            state_config["path"] = env_path

        if not state_config.get("path"):
            raise ValueError(
                "state.path must be explicitly configured in config.yaml"
            )
        state_config["path"] = os.path.expanduser(state_config["path"])

        lock_timeout = state_config.get("lock_timeout", 10.0)
        if lock_timeout <= 0:
            raise ValueError("state.lock_timeout must be positive")
        state_config["lock_timeout"] = lock_timeout

        return state_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        return self._config.get("logging", {})

    @property
    def default_model(self) -> str:
        """Model identifier used when none is given on the command line."""
        model = self._config.get("defaults", {}).get("model")
        if not model:
            raise ValueError(
                "defaults.model must be explicitly configured in config.yaml"
            )
        return model
