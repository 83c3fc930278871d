"""Service exceptions and their HTTP mapping."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class MyGamesError(Exception):
    """Base exception for the service."""

    code = "MYGAMES_ERROR"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": True, "code": self.code, "message": self.message}


class AuthError(MyGamesError):
    """Bad credentials, unconfirmed email or a missing/expired session."""

    code = "AUTH_ERROR"
    status_code = 401


class GatewayError(MyGamesError):
    """A call to the database or the auth provider failed."""

    code = "GATEWAY_ERROR"
    status_code = 502


class NotFoundError(MyGamesError):
    """No record with the requested id for the current user."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationError(MyGamesError):
    """Input outside the accepted vocabularies or ranges."""

    code = "VALIDATION_ERROR"
    status_code = 422


class QueueError(MyGamesError):
    """Reorder or visibility request that doesn't fit the current queue."""

    code = "QUEUE_ERROR"
    status_code = 400


class ReorderInProgressError(QueueError):
    """A reorder batch for the same queue is still being saved."""

    code = "REORDER_IN_PROGRESS"
    status_code = 409


def register_exception_handlers(app: FastAPI):
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(MyGamesError)
    async def handle_service_error(request: Request, exc: MyGamesError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
