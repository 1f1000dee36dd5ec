"""Shared fixtures for chat stream tests."""

from pathlib import Path

import pytest
import yaml

BASE_CONFIG = {
    "streaming": {"strict_headers": False, "encoding": "utf-8"},
    "client": {
        "base_url": "http://chat.test",
        "endpoint_prefix": "/api/genai/chatbot",
        "connect_timeout": 5.0,
        "read_timeout": 30.0,
        "write_timeout": 5.0,
        "pool_timeout": 5.0,
        "token_env": "CHAT_STREAM_TEST_TOKEN",
        "token_type": "Bearer",
    },
    "logging": {"level": "DEBUG"},
}


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a config.yaml with per-section overrides and return its path."""

    def _write(**sections) -> Path:
        config = {name: dict(values) for name, values in BASE_CONFIG.items()}
        for name, values in sections.items():
            if values is None:
                config.pop(name, None)
            else:
                config.setdefault(name, {}).update(values)
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(config))
        return path

    return _write
