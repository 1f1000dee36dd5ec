"""Configuration management for the chat stream client."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")


class Configuration:
    """Manages configuration and environment variables for chat streaming."""

    def __init__(self, config_path: str | os.PathLike | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for the auth token
        self._config = self._load_yaml_config(config_path or DEFAULT_CONFIG_PATH)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    @staticmethod
    def _load_yaml_config(config_path: str | os.PathLike) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_streaming_config(self) -> dict[str, Any]:
        """Get stream decoding configuration from YAML.

        Returns:
            Streaming configuration dictionary with validated values.

        Raises:
            ValueError: If required streaming parameters are missing or invalid.
        """
        streaming_config = self._config.get("streaming", {})

        required_keys = ["strict_headers", "encoding"]
        for key in required_keys:
            if key not in streaming_config:
                raise ValueError(
                    f"streaming.{key} must be explicitly configured in config.yaml"
                )

        if not isinstance(streaming_config["strict_headers"], bool):
            raise ValueError("streaming.strict_headers must be true or false")

        return streaming_config

    def get_client_config(self) -> dict[str, Any]:
        """Get HTTP client configuration from YAML.

        Returns:
            Client configuration dictionary with validated values.

        Raises:
            ValueError: If required client parameters are missing or invalid.
        """
        client_config = self._config.get("client", {})

        required_keys = [
            "base_url", "endpoint_prefix", "connect_timeout", "read_timeout",
            "write_timeout", "pool_timeout", "token_env", "token_type",
        ]
        for key in required_keys:
            if key not in client_config:
                raise ValueError(
                    f"client.{key} must be explicitly configured in config.yaml"
                )

        for key in ["connect_timeout", "read_timeout", "write_timeout", "pool_timeout"]:
            if client_config[key] <= 0:
                raise ValueError(f"client.{key} must be positive")

        return client_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        return self._config.get("logging", {"level": "INFO"})

    @property
    def auth_token(self) -> str | None:
        """Get the bearer token for the chat backend, if one is set.

        Returns:
            The token, or None when the environment variable is unset or blank.
        """
        env_key = self.get_client_config()["token_env"]
        token = os.getenv(env_key, "").strip()
        return token or None
