"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from src.domain.exceptions import (
    DocumentServiceException,
    DomainException,
    NotFoundException,
    SettlementNetworkException,
    StateConflictException,
    ValidationException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exception families to HTTP responses. Starlette picks the
    handler registered for the closest class in the exception's MRO, so
    specific families win over the DomainException fallback.
    """

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle malformed request bodies and parameters."""
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        return _error_response(422, "REQUEST_VALIDATION_ERROR", details)

    @app.exception_handler(NotFoundException)
    async def not_found_handler(
        request: Request,
        exc: NotFoundException,
    ) -> JSONResponse:
        """Handle missing ledger records."""
        return _error_response(404, exc.code, exc.message)

    @app.exception_handler(ValidationException)
    async def validation_handler(
        request: Request,
        exc: ValidationException,
    ) -> JSONResponse:
        """Handle rejected input."""
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(StateConflictException)
    async def state_conflict_handler(
        request: Request,
        exc: StateConflictException,
    ) -> JSONResponse:
        """Handle requests that conflict with current ledger state."""
        logger.info(
            "state_conflict",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(409, exc.code, exc.message)

    @app.exception_handler(SettlementNetworkException)
    async def settlement_error_handler(
        request: Request,
        exc: SettlementNetworkException,
    ) -> JSONResponse:
        """Handle settlement network failures before any ledger change."""
        logger.error(
            "settlement_network_error",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(
            503, exc.code, "Settlement network unavailable. Please try again later."
        )

    @app.exception_handler(DocumentServiceException)
    async def document_service_handler(
        request: Request,
        exc: DocumentServiceException,
    ) -> JSONResponse:
        """Handle document service failures."""
        logger.error(
            "document_service_error",
            request_id=get_request_id(),
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(
            503, exc.code, "Document service unavailable. Please try again later."
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
