"""YAML configuration loader with environment variable overrides.

Configuration is layered, later layers winning:

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file          -- local developer overrides (not committed)
  3. Environment variables  -- set at deploy time

:func:`load_config` reads the YAML file, then deep-merges the values that
:class:`~src.config.settings.Settings` resolved from the environment.
Only keys the environment actually sets are overlaid, so a YAML default
survives unless someone exports the matching variable.
"""

import os
from pathlib import Path

import yaml

from src.config.settings import Settings

# YAML key path -> (Settings field, environment variable)
_ENV_BACKED_KEYS: dict[tuple[str, str], tuple[str, str]] = {
    ("retrieval", "top_k"): ("chat_top_k", "CHAT_TOP_K"),
    ("retrieval", "similarity_floor"): ("chat_similarity_floor", "CHAT_SIMILARITY_FLOOR"),
    ("retrieval", "query_prefix"): ("chat_query_prefix", "CHAT_QUERY_PREFIX"),
    ("ingestion", "content_max_chars"): ("content_max_chars", "CONTENT_MAX_CHARS"),
    ("ingestion", "generation_max_attempts"): ("generation_max_attempts", "GENERATION_MAX_ATTEMPTS"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Resolved settings; a fresh :class:`Settings` is built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "embedding": {
            "dimension": settings.embedding_dimension,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    for (section, key), (field_name, env_var) in _ENV_BACKED_KEYS.items():
        if env_var in os.environ or section not in yaml_config or key not in yaml_config[section]:
            env_overrides.setdefault(section, {})[key] = getattr(settings, field_name)

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
