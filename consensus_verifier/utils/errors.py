"""Custom exception hierarchy for the consensus verifier.

All application exceptions inherit from :class:`ConsensusVerifierError`,
which carries an optional ``provider_name`` so error handlers can identify
which external service (e.g. "openai", "anthropic", "sqlite_fact_store")
caused the failure.

    ConsensusVerifierError  (base)
    +-- LLMError             (oracle unreachable, non-2xx, empty reply)
    +-- ResponseParseError   (oracle reply contained no usable JSON object)
    +-- RateLimitError       (provider rate-limit exceeded)
    +-- ConfigurationError   (zero oracles, invalid consensus policy)
    +-- StorageError         (fact store / archive read or write failure)

Oracle-level errors (LLMError, ResponseParseError, RateLimitError) never
leave the oracle adapter: they are converted into ``error`` responses.
Only ConfigurationError and StorageError propagate to callers of the
verification service.
"""


class ConsensusVerifierError(Exception):
    """Base exception for all consensus verifier errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[openai] Request timed out``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Oracle errors (absorbed at the adapter boundary)
# ---------------------------------------------------------------------------

class LLMError(ConsensusVerifierError):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ResponseParseError(ConsensusVerifierError):
    """Raised when no JSON object can be recovered from an oracle reply."""

    def __init__(
        self,
        message: str = "Could not extract a JSON object from the response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ConsensusVerifierError):
    """Raised when a provider rejects a request because of rate limiting."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Errors that reach the caller
# ---------------------------------------------------------------------------

class ConfigurationError(ConsensusVerifierError):
    """Raised when configuration is invalid, e.g. no oracles are configured."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(ConsensusVerifierError):
    """Raised when the fact store or document archive cannot be read or written.

    Not retried internally; retry policy belongs to the caller.
    """

    def __init__(
        self,
        message: str = "Fact store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
