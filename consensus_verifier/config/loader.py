"""YAML configuration loader with environment variable overrides.

Layers, later ones winning:

    1. Field defaults in Settings
    2. config/config.yaml  - checked-in defaults
    3. .env file           - local overrides (not committed)
    4. Environment vars    - deployment-time values

Only values that were actually supplied (by env, ``.env`` or keyword
arguments) override the YAML; a Settings field left at its default never
masks a YAML value.  ``load_config`` returns the merged dict, e.g.

    yaml      = {"consensus": {"quorum": 3, "note": "x"}}
    env       = {}                          # QUORUM not set
    result    = {"consensus": {"quorum": 3, "note": "x", "confidence_base": 0.7, ...}}

and ``apply_config`` copies the mapped keys back onto a Settings object,
which is what the composition root builds components from.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from consensus_verifier.config.settings import Settings
from consensus_verifier.utils.errors import ConfigurationError

# (section, key) in config.yaml -> Settings field
CONFIG_KEYS: dict[tuple[str, str], str] = {
    ("app", "host"): "app_host",
    ("app", "port"): "app_port",
    ("app", "env"): "app_env",
    ("consensus", "quorum"): "quorum",
    ("consensus", "confidence_base"): "confidence_base",
    ("consensus", "confidence_step"): "confidence_step",
    ("consensus", "confidence_cap"): "confidence_cap",
    ("oracles", "timeout_seconds"): "oracle_timeout_seconds",
    ("oracles", "temperature"): "oracle_temperature",
    ("oracles", "max_tokens"): "oracle_max_tokens",
    ("circuit_breaker", "failure_threshold"): "circuit_failure_threshold",
    ("circuit_breaker", "reset_seconds"): "circuit_reset_seconds",
    ("synthesis", "provider"): "synthesis_provider",
    ("synthesis", "min_confidence"): "synthesis_min_confidence",
    ("synthesis", "max_facts"): "synthesis_max_facts",
    ("audit", "min_confidence"): "audit_min_confidence",
    ("batch", "delay_seconds"): "batch_delay_seconds",
    ("logging", "level"): "log_level",
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Layer Settings defaults, then the YAML file, then explicitly supplied values.

    Args:
        path: Path to the YAML configuration file.  Missing file = empty base.
        settings: Pre-built settings; a fresh ``Settings()`` is read if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(message=f"{path} must hold a mapping at the top level")

    settings = settings or Settings()
    config: dict[str, Any] = {}
    for (section, key), field in CONFIG_KEYS.items():
        config.setdefault(section, {})[key] = getattr(settings, field)
    _deep_merge(config, yaml_config)

    env_overrides: dict[str, Any] = {
        "oracles": {
            "available_providers": settings.get_available_oracle_providers(),
            "gateway_models": settings.get_gateway_models(),
        },
    }
    for (section, key), field in CONFIG_KEYS.items():
        if field in settings.model_fields_set:
            env_overrides.setdefault(section, {})[key] = getattr(settings, field)

    _deep_merge(config, env_overrides)
    return config


def apply_config(settings: Settings, config: dict[str, Any]) -> Settings:
    """Return *settings* with every unset mapped field taken from *config*.

    Raises:
        ConfigurationError: If a YAML value fails Settings validation.
    """
    updates: dict[str, Any] = {}
    for (section, key), field in CONFIG_KEYS.items():
        if field in settings.model_fields_set:
            continue
        block = config.get(section)
        if not isinstance(block, dict) or block.get(key) is None:
            continue
        if block[key] != getattr(settings, field):
            updates[field] = block[key]
    if not updates:
        return settings
    # model_validate skips the env sources, so the merge above is final.
    try:
        return Settings.model_validate({**settings.model_dump(), **updates})
    except ValueError as exc:
        raise ConfigurationError(message=f"invalid value in config file: {exc}") from exc


def load_settings(settings: Settings | None = None) -> Settings:
    """Settings with ``config_path`` filling every field the environment left unset."""
    settings = settings or Settings()
    return apply_config(settings, load_config(settings.config_path, settings=settings))


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
