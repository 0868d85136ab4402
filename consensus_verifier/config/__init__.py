"""Configuration module - exports Settings and the YAML loader.

There is no module-level settings instance: the composition root in
``consensus_verifier.main`` builds one and injects it.
"""

from consensus_verifier.config.loader import apply_config, load_config, load_settings
from consensus_verifier.config.settings import Settings

__all__ = ["Settings", "apply_config", "load_config", "load_settings"]
