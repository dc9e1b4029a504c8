"""
Environment and pipeline configuration for the LeadForge services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv


def _env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


class ServiceConfig:
    """Settings read from ``backend/.env`` plus the YAML pipeline tunables."""

    def __init__(self) -> None:
        # .env sits next to app.py
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=True)
        self.config: dict[str, Any] = {}
        self.pipeline_config: dict[str, Any] = {}
        self.pipeline_config_path = os.getenv(
            "PIPELINE_CONFIG_PATH",
            os.path.join(os.path.dirname(__file__), "../../config/pipeline.yaml"),
        )
        self.load_from_env()
        self.load_pipeline_config()

    def load_from_env(self) -> None:
        """Rebuild the key map from the process environment."""
        self.config = {
            # language model
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "use_azure_openai": _env_flag("USE_AZURE_OPENAI"),
            "azure_openai_key": os.getenv("AZURE_OPENAI_KEY"),
            "azure_openai_endpoint": os.getenv("AZURE_OPENAI_ENDPOINT"),
            "azure_openai_deployment": os.getenv("AZURE_OPENAI_DEPLOYMENT"),
            "llm_model": os.getenv("LLM_MODEL", "gpt-4.1-mini"),
            "llm_web_search_model": os.getenv("LLM_WEB_SEARCH_MODEL", "gpt-4o-search-preview"),
            "llm_max_completion_tokens": _env_int("LLM_MAX_COMPLETION_TOKENS", 8000),
            # http surface
            "database_url": os.getenv("DATABASE_URL"),
            "debug": _env_flag("DEBUG"),
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            "secret_key": os.getenv("SECRET_KEY", "supersecret"),
            "cron_secret": os.getenv("CRON_SECRET", "internal-cron-secret"),
            "max_upload_rows": _env_int("MAX_UPLOAD_ROWS", 500),
            # background processing
            "scheduler_enabled": _env_flag("SCHEDULER_ENABLED", True),
            "scheduler_interval_seconds": float(os.getenv("SCHEDULER_INTERVAL_SECONDS", "20")),
            "processing_batch_size": _env_int("PROCESSING_BATCH_SIZE", 5),
            # case catalog and settings caches
            "case_data_url": os.getenv("CASE_DATA_URL"),
            "case_catalog_timeout": _env_int("CASE_CATALOG_TIMEOUT", 10),
            "case_cache_ttl": _env_int("CASE_CACHE_TTL", 3600),
            "settings_cache_ttl": _env_int("SETTINGS_CACHE_TTL", 300),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Value for ``key``; ``default`` when unset or ``None``."""
        value = self.config.get(key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self.config[key] = value

    def reload(self) -> None:
        """Re-read the environment and the pipeline file."""
        self.load_from_env()
        self.load_pipeline_config()

    def load_pipeline_config(self) -> None:
        """Load pipeline tunables from YAML file."""
        path = os.path.abspath(self.pipeline_config_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.pipeline_config = data

    def get_pipeline_value(self, path: str, default: Any = None) -> Any:
        """Retrieve a pipeline configuration value via dotted path."""
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

    def set_pipeline_config(self, pipeline_config: dict[str, Any]) -> None:
        """Override pipeline configuration (useful for tests)."""
        self.pipeline_config = pipeline_config

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()
