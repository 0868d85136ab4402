"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from, in priority order:
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. A .env file in the working directory
#   3. config/config.yaml (applied by config.loader.load_settings)
#   4. The defaults below
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.
#
# Each oracle is configured by its own credentials.  An empty key means
# "not configured" and the factory in main.py skips that oracle.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Consensus verifier settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Oracles ===
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    # OpenAI-compatible gateway; one oracle per listed model.
    gateway_api_key: str = ""
    gateway_base_url: str = "https://ai.gateway.lovable.dev/v1"
    gateway_models: str = "google/gemini-2.5-flash,openai/gpt-5-mini"
    xai_api_key: str = ""
    xai_base_url: str = "https://api.x.ai/v1"
    xai_model: str = "grok-3-mini"
    # Which configured provider writes evidence documents ("" = first available).
    synthesis_provider: str = ""

    # === Consensus policy ===
    quorum: int = Field(default=2, ge=1)
    confidence_base: float = 0.7
    confidence_step: float = 0.1
    confidence_cap: float = 0.95

    # === Oracle calls ===
    oracle_timeout_seconds: float = Field(default=25.0, gt=0)
    oracle_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    oracle_max_tokens: int = 4000
    circuit_failure_threshold: int = 3
    circuit_reset_seconds: float = 30.0

    # === Synthesis / audit ===
    synthesis_min_confidence: float = 0.75
    synthesis_max_facts: int = 50
    audit_min_confidence: float = 0.65

    # === Batch processing ===
    batch_delay_seconds: float = 2.0

    # === Storage ===
    config_path: str = "config/config.yaml"
    fact_db_path: str = "data/facts.db"
    archive_db_path: str = "data/raw_documents.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_gateway_models(self) -> list[str]:
        """Return the configured gateway model ids, blanks removed."""
        return [m.strip() for m in self.gateway_models.split(",") if m.strip()]

    def get_available_oracle_providers(self) -> list[str]:
        """Return provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.gateway_api_key and self.get_gateway_models():
            providers.append("gateway")
        if self.xai_api_key:
            providers.append("xai")
        return providers
