"""
Configuration for the script pipeline.

Secrets and endpoints come from the environment (``.env`` is loaded from the
project root). Tunables live in ``config/pipeline.yaml`` and are addressed by
dotted path, e.g. ``transcription.retry.base_delay``.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv

MB = 1024 * 1024


class ServiceConfig:
    """Environment keys plus the YAML pipeline settings."""

    def __init__(self) -> None:
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=True)
        self.config: dict[str, Any] = {}
        self.pipeline_config: dict[str, Any] = {}
        self.pipeline_config_path = os.getenv(
            "PIPELINE_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "../config/pipeline.yaml"),
        )
        self.load_from_env()
        self.load_pipeline_config()

    def load_from_env(self) -> None:
        """Load credentials and collaborator endpoints from the environment."""
        self.config = {
            # Completion and speech-to-text providers
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "azure_openai_key": os.getenv("AZURE_OPENAI_KEY"),
            "azure_openai_endpoint": os.getenv("AZURE_OPENAI_ENDPOINT"),
            "azure_openai_deployment": os.getenv("AZURE_OPENAI_DEPLOYMENT"),
            "azure_openai_transcription_deployment": os.getenv("AZURE_OPENAI_TRANSCRIPTION_DEPLOYMENT"),
            "use_azure_openai": os.getenv("USE_AZURE_OPENAI", "false").lower() == "true",
            # Storage
            "database_url": os.getenv("DATABASE_URL"),
            "redis_url": os.getenv("REDIS_URL"),
            "media_root": os.getenv("MEDIA_ROOT", "/app/media"),
            # Web layer
            "debug": os.getenv("DEBUG", "false").lower() == "true",
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            "secret_key": os.getenv("SECRET_KEY", "supersecret"),
            # Collaborators
            "trend_feed_url": os.getenv("TREND_FEED_URL"),
            "deal_directory_url": os.getenv("DEAL_DIRECTORY_URL"),
            "deal_directory_token": os.getenv("DEAL_DIRECTORY_TOKEN"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get an environment-backed value.

        Args:
            key: Configuration key
            default: Returned when the key is unknown or unset

        Returns:
            Configuration value
        """
        value = self.config.get(key, default)
        return default if value is None else value

    def load_pipeline_config(self) -> None:
        """Load pipeline settings from YAML; a missing file means all defaults."""
        path = os.path.abspath(self.pipeline_config_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.pipeline_config = data

    def get_pipeline_value(self, path: str, default: Any = None) -> Any:
        """Retrieve a pipeline setting via dotted path.

        ``PIPELINE_FLAG_<PATH>`` in the environment wins over the YAML file,
        with dots replaced by underscores (``sweeper.timeout_minutes`` is
        ``PIPELINE_FLAG_SWEEPER_TIMEOUT_MINUTES``).
        """
        env_override_key = f"PIPELINE_FLAG_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.pipeline_config
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    def get_pipeline_bytes(self, path: str, default_mb: float) -> int:
        """Read a ``*_mb`` pipeline setting and return it in bytes."""
        return int(float(self.get_pipeline_value(path, default_mb)) * MB)

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            return float(lowered) if "." in lowered else int(lowered)
        return raw or default


# Global configuration instance
config = ServiceConfig()
