"""Consensus verifier FastAPI application entry point.

Composition root: builds every provider and service from a
:class:`Settings` instance and hands them to the API via ``app.state``.
Nothing is built at import time; ``create_app`` is an application
factory, and the CLI reuses :func:`build_components` directly.

Oracle selection follows the configured credentials:

    OPENAI_API_KEY     -> one oracle  ("openai:<OPENAI_MODEL>")
    ANTHROPIC_API_KEY  -> one oracle  ("anthropic:<ANTHROPIC_MODEL>")
    GATEWAY_API_KEY    -> one oracle per model in GATEWAY_MODELS
    XAI_API_KEY        -> one oracle  ("xai:<XAI_MODEL>")
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from consensus_verifier import __version__
from consensus_verifier.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from consensus_verifier.api.routes import router as api_router
from consensus_verifier.config.loader import apply_config, load_config, load_settings
from consensus_verifier.config.settings import Settings
from consensus_verifier.interfaces.document_archive import IDocumentArchive
from consensus_verifier.interfaces.fact_store import IFactStore
from consensus_verifier.interfaces.llm_provider import ILLMProvider
from consensus_verifier.interfaces.oracle import IOracle
from consensus_verifier.models.verification import ConsensusPolicy
from consensus_verifier.providers.archive.sqlite_document_archive import SQLiteDocumentArchive
from consensus_verifier.providers.fact_store.sqlite_fact_store import SQLiteFactStore
from consensus_verifier.providers.llm.anthropic_provider import AnthropicLLMProvider
from consensus_verifier.providers.llm.openai_provider import OpenAILLMProvider
from consensus_verifier.providers.oracle.llm_oracle import LLMOracle
from consensus_verifier.services.aggregator import QuorumAggregator
from consensus_verifier.services.evidence_synthesizer import EvidenceSynthesizer
from consensus_verifier.services.fan_out import OracleFanOut
from consensus_verifier.services.normalizer import FactNormalizer
from consensus_verifier.services.verification_service import ConsensusVerifier
from consensus_verifier.utils.circuit_breaker import CircuitBreaker
from consensus_verifier.utils.errors import ConfigurationError
from consensus_verifier.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider factories
# ---------------------------------------------------------------------------


def build_llm_providers(app_settings: Settings) -> list[ILLMProvider]:
    """One provider per configured model, in a fixed order."""
    providers: list[ILLMProvider] = []
    if app_settings.openai_api_key:
        providers.append(OpenAILLMProvider(settings=app_settings))
    if app_settings.anthropic_api_key:
        providers.append(AnthropicLLMProvider(settings=app_settings))
    if app_settings.gateway_api_key:
        for model in app_settings.get_gateway_models():
            providers.append(
                OpenAILLMProvider(
                    settings=app_settings,
                    api_key=app_settings.gateway_api_key,
                    model=model,
                    base_url=app_settings.gateway_base_url,
                    label="gateway",
                )
            )
    if app_settings.xai_api_key:
        providers.append(
            OpenAILLMProvider(
                settings=app_settings,
                api_key=app_settings.xai_api_key,
                model=app_settings.xai_model,
                base_url=app_settings.xai_base_url,
                label="xai",
            )
        )
    return providers


def build_oracles(app_settings: Settings, providers: list[ILLMProvider]) -> list[IOracle]:
    """Wrap each provider in an LLMOracle with its own circuit breaker."""
    return [
        LLMOracle(
            provider,
            temperature=app_settings.oracle_temperature,
            max_tokens=app_settings.oracle_max_tokens,
            timeout_seconds=app_settings.oracle_timeout_seconds,
            circuit_breaker=CircuitBreaker(
                name=provider.get_provider_name(),
                failure_threshold=app_settings.circuit_failure_threshold,
                reset_timeout=app_settings.circuit_reset_seconds,
            ),
        )
        for provider in providers
    ]


def select_synthesis_provider(
    app_settings: Settings, providers: list[ILLMProvider]
) -> ILLMProvider | None:
    """Pick the evidence writer.

    ``SYNTHESIS_PROVIDER`` may be a full provider name
    (``"anthropic:claude-sonnet-4-20250514"``) or just its label
    (``"anthropic"``).  Empty means the first configured provider.
    """
    if not providers:
        return None
    wanted = app_settings.synthesis_provider.strip()
    if not wanted:
        return providers[0]
    for provider in providers:
        name = provider.get_provider_name()
        if name == wanted or name.split(":", 1)[0] == wanted:
            return provider
    raise ConfigurationError(
        message=f"synthesis provider {wanted!r} is not among the configured oracles"
    )


def build_policy(app_settings: Settings) -> ConsensusPolicy:
    try:
        return ConsensusPolicy(
            quorum=app_settings.quorum,
            confidence_base=app_settings.confidence_base,
            confidence_step=app_settings.confidence_step,
            confidence_cap=app_settings.confidence_cap,
        )
    except ValueError as exc:
        raise ConfigurationError(message=f"invalid consensus policy: {exc}") from exc


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    *,
    oracles: list[IOracle] | None = None,
    synthesis_provider: ILLMProvider | None = None,
    fact_store: IFactStore | None = None,
    archive: IDocumentArchive | None = None,
) -> dict[str, Any]:
    """Construct every provider and service the application needs.

    Fields left unset in *app_settings* are first filled from the YAML
    file at ``config_path``.  Any collaborator passed in is used as-is
    instead of being built from settings.  Returns a flat dict of named
    components for ``app.state``.

    Raises
    ------
    ConfigurationError
        If no oracle is configured or the consensus policy is invalid.
    """
    config = load_config(app_settings.config_path, settings=app_settings)
    app_settings = apply_config(app_settings, config)

    if oracles is None:
        llm_providers = build_llm_providers(app_settings)
        oracles = build_oracles(app_settings, llm_providers)
        if synthesis_provider is None:
            synthesis_provider = select_synthesis_provider(app_settings, llm_providers)

    fact_store = fact_store or SQLiteFactStore(db_path=app_settings.fact_db_path)
    archive = archive or SQLiteDocumentArchive(db_path=app_settings.archive_db_path)

    fan_out = OracleFanOut(oracles, timeout_seconds=app_settings.oracle_timeout_seconds)
    synthesizer = (
        EvidenceSynthesizer(
            synthesis_provider,
            fact_store,
            min_confidence=app_settings.synthesis_min_confidence,
            max_facts=app_settings.synthesis_max_facts,
        )
        if synthesis_provider is not None
        else None
    )
    verifier = ConsensusVerifier(
        fan_out=fan_out,
        normalizer=FactNormalizer(),
        aggregator=QuorumAggregator(build_policy(app_settings)),
        fact_store=fact_store,
        synthesizer=synthesizer,
        archive=archive,
        audit_min_confidence=app_settings.audit_min_confidence,
    )

    if len(oracles) < app_settings.quorum:
        _logger.warning(
            "quorum_unreachable",
            oracles=len(oracles),
            quorum=app_settings.quorum,
        )

    return {
        "settings": app_settings,
        "config": config,
        "fact_store": fact_store,
        "archive": archive,
        "verifier": verifier,
        "oracle_ids": fan_out.oracle_ids,
        "synthesis_provider": (
            synthesis_provider.get_provider_name() if synthesis_provider is not None else None
        ),
    }


async def initialize_stores(components: dict[str, Any]) -> None:
    """Create the fact store and archive schemas."""
    await components["fact_store"].initialize()
    await components["archive"].initialize()


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    app_settings:
        Read from the environment and the config file when omitted.
    components:
        Pre-built components (see :func:`build_components`); tests use
        this to inject mock oracles.  Built on startup when omitted.
    """
    app_settings = load_settings(app_settings)
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        built = components or build_components(app_settings)
        await initialize_stores(built)
        for key, value in built.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=__version__,
            environment=app_settings.app_env,
            oracles=built["oracle_ids"],
            synthesis_provider=built["synthesis_provider"],
        )
        yield
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Consensus Verifier API",
        version=__version__,
        description=(
            "Ask several independent LLM oracles about a subject and keep only "
            "the facts a quorum of them agree on."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


if __name__ == "__main__":
    _settings = load_settings()
    uvicorn.run(
        "consensus_verifier.main:create_app",
        factory=True,
        host=_settings.app_host,
        port=_settings.app_port,
        reload=(_settings.app_env == "development"),
    )
