"""HTTP API layer: routes, schemas and middleware."""

from consensus_verifier.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from consensus_verifier.api.routes import router
from consensus_verifier.api.schemas import (
    BatchVerifyRequest,
    ErrorResponse,
    HealthResponse,
    VerifyRequest,
)

__all__ = [
    "BatchVerifyRequest",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "RequestLoggingMiddleware",
    "VerifyRequest",
    "configure_cors",
    "router",
]
