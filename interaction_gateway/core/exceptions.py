"""
Custom exception handling for the interaction gateway.

Three failure channels reach the platform with distinct status codes:
authentication (401), routing / malformed payloads (400) and handler crashes
(500). Owner-only denials are ordinary 200 replies and never raise.

Contract violations (calling a reply helper the interaction kind does not
allow) are raised at the call site and carry a machine-checkable ``code``.
"""

import enum
import uuid
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.responses import Response
import logging

from .middleware import get_current_request_id

logger = logging.getLogger(__name__)


# ============================================================================
# Base Exception Classes
# ============================================================================

class GatewayException(Exception):
    """Base exception class for errors that end an interaction request."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.correlation_id = get_current_request_id() or str(uuid.uuid4())
        super().__init__(message)


# ============================================================================
# Authentication Exceptions
# ============================================================================

class AuthenticationError(GatewayException):
    """Raised when the request signature cannot be verified."""

    def __init__(self, reason: str = "Bad request signature", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=reason,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


# ============================================================================
# Routing Exceptions
# ============================================================================

class RoutingMissError(GatewayException):
    """Raised when no registered handler matches the interaction."""

    def __init__(self, kind: str, key: Any, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"No {kind} handler registered for {key!r}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={**(details or {}), "kind": kind, "key": repr(key)},
        )
        self.kind = kind
        self.key = key


class InvalidPayloadError(GatewayException):
    """Raised when the interaction payload is malformed or unsupported."""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Invalid interaction payload: {reason}",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )

    @classmethod
    def from_validation_error(cls, reason: str, error: ValidationError) -> "InvalidPayloadError":
        """Wrap a pydantic validation failure, keeping one ``loc: msg`` line per error."""
        errors = [
            f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
            for item in error.errors()
        ]
        return cls(reason, details={"errors": errors})


# ============================================================================
# Interaction Contract Violations
# ============================================================================

class ErrorCode(str, enum.Enum):
    COMMAND_INTERACTION_CANNOT_DEFER_UPDATE = "CommandInteractionCannotDeferUpdate"
    COMMAND_INTERACTION_CANNOT_UPDATE = "CommandInteractionCannotUpdate"
    MODAL_SUBMIT_INTERACTION_CANNOT_SHOW_MODAL = "ModalSubmitInteractionCannotShowModal"


MESSAGES = {
    ErrorCode.COMMAND_INTERACTION_CANNOT_DEFER_UPDATE:
        "Command interactions cannot use defer_update, maybe you meant to use defer_reply",
    ErrorCode.COMMAND_INTERACTION_CANNOT_UPDATE:
        "Command interactions cannot use update, maybe you meant to use reply",
    ErrorCode.MODAL_SUBMIT_INTERACTION_CANNOT_SHOW_MODAL:
        "Modal submit interactions cannot use show_modal",
}


class InteractionContractError(Exception):
    """A reply helper was used on an interaction kind that forbids it."""

    code: ErrorCode

    def __init__(self, code: Optional[ErrorCode] = None):
        if code is not None:
            self.code = code
        super().__init__(MESSAGES[self.code])

    def __str__(self) -> str:
        return f"[{self.code.value}] {MESSAGES[self.code]}"


class CommandInteractionCannotDeferUpdate(InteractionContractError):
    code = ErrorCode.COMMAND_INTERACTION_CANNOT_DEFER_UPDATE


class CommandInteractionCannotUpdate(InteractionContractError):
    code = ErrorCode.COMMAND_INTERACTION_CANNOT_UPDATE


class ModalSubmitInteractionCannotShowModal(InteractionContractError):
    code = ErrorCode.MODAL_SUBMIT_INTERACTION_CANNOT_SHOW_MODAL


# ============================================================================
# Configuration Exceptions
# ============================================================================

class RegistryConfigurationError(Exception):
    """Raised at startup when handler definitions cannot form a registry."""


class DuplicateHandlerError(RegistryConfigurationError):
    """Raised when two handlers of the same kind share a key."""

    def __init__(self, kind: str, key: Any):
        super().__init__(f"Duplicate {kind} handler registered for {key!r}")
        self.kind = kind
        self.key = key


class InvalidHandlerError(RegistryConfigurationError):
    """Raised when a handler definition is unusable."""


class InvalidCustomIdError(ValueError):
    """Raised when a custom id cannot be encoded."""


# ============================================================================
# Outbound API Exceptions
# ============================================================================

class DiscordAPIError(Exception):
    """Raised when the Discord REST API returns an error."""

    def __init__(self, status_code: int, error_message: str, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.error_message = error_message
        self.details = details or {}
        super().__init__(f"Discord API error {status_code}: {error_message}")


# ============================================================================
# Exception Handlers
# ============================================================================

def error_response(exc: GatewayException) -> Response:
    """Render a gateway exception as the platform-facing HTTP response."""
    headers = {"X-Correlation-ID": exc.correlation_id}

    if isinstance(exc, AuthenticationError):
        return PlainTextResponse(exc.message, status_code=exc.status_code, headers=headers)

    content = {
        "error": "Bad Request" if exc.status_code == status.HTTP_400_BAD_REQUEST else exc.__class__.__name__,
        "message": exc.message,
        "correlation_id": exc.correlation_id,
    }
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def gateway_exception_handler(request: Request, exc: GatewayException) -> Response:
    """
    Generic handler for all GatewayException instances.

    Logs the error with correlation ID and returns the matching response.
    """
    logger.warning(
        f"[{exc.correlation_id}] {exc.__class__.__name__}: {exc.message}",
        extra={
            "correlation_id": exc.correlation_id,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        }
    )
    return error_response(exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Fallback handler for unhandled exceptions.

    Handler crashes on the immediate path end up here.
    """
    correlation_id = str(uuid.uuid4())

    logger.exception(
        f"[{correlation_id}] Unhandled exception: {str(exc)}",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "message": "The interaction handler failed.",
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-ID": correlation_id}
    )


# ============================================================================
# Exception Handler Registration
# ============================================================================

def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(GatewayException, gateway_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
