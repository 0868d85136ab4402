"""API middleware: CORS, request logging and error handling.

Starlette middleware runs as a stack, last added first:

    Client -> RequestLogging -> ErrorHandling -> route handler

so the request log sees the final status code, including the 500s that
ErrorHandling produces from application errors.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from consensus_verifier.api.schemas import ErrorResponse
from consensus_verifier.utils.errors import ConsensusVerifierError, LLMError, RateLimitError
from consensus_verifier.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless a list is given."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=duration_ms,
            )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``ConsensusVerifierError`` subclasses into structured JSON errors.

    Configuration and storage failures map to 500, a failed synthesis
    writer call to 502 (429 when rate limited).  Stack traces stay in the
    logs.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ConsensusVerifierError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=_status_for(exc), content=body.model_dump())


def _status_for(exc: ConsensusVerifierError) -> int:
    # Only the synthesis writer call lets LLM errors out of the service.
    if isinstance(exc, RateLimitError):
        return 429
    if isinstance(exc, LLMError):
        return 502
    return 500
