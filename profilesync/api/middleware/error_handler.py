"""
Global Error Handler Middleware - API Layer

Last line of defence for exceptions escaping an endpoint. Domain errors keep
their message and map onto the status codes the action endpoints use;
anything else becomes a 500 whose message is hidden outside development.

@.architecture
Incoming: app.py (middleware registration), Exception objects from endpoints --- {FastAPI Request objects, ProfileSyncError and other exceptions}
Processing: status_for_error(), dispatch(), _error_body(), _log() --- {4 jobs: exception_catching, error_classification, response_formatting, logging}
Outgoing: monitoring/logging.py, Frontend (HTTP) --- {structured error logs, JSONResponse {"error": {code, message, type, detail?, request_id?}}}
"""

import traceback
from typing import Any, Callable, Dict, Tuple, Type

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ...core.errors import EnhancementError, FetchError, NotFoundError, ProfileSyncError
from ...monitoring import get_logger

logger = get_logger(__name__)

# Upstream failures (store or runtime) are the gateway's problem, not ours
ERROR_STATUS: Dict[Type[Exception], int] = {
    NotFoundError: 404,
    FetchError: 502,
    EnhancementError: 502,
}

HIDDEN_MESSAGE = "An error occurred processing your request"


def status_for_error(error: BaseException) -> int:
    """HTTP status for a domain error (500 for anything unmapped)."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Turns uncaught exceptions into a JSON error body.

    Args:
        app: Wrapped ASGI app
        development: Expose messages of unexpected errors and include a
            traceback in the body
    """

    def __init__(self, app: ASGIApp, development: bool = False):
        super().__init__(app)
        self.development = development

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            status_code, body = self._error_body(request, e)
            self._log(request, e, status_code)
            return JSONResponse(status_code=status_code, content=body)

    def _error_body(self, request: Request, error: Exception) -> Tuple[int, Dict[str, Any]]:
        if isinstance(error, ProfileSyncError):
            status_code = status_for_error(error)
            message = error.message
        else:
            status_code = getattr(error, 'status_code', 500)
            message = str(error) if self.development else HIDDEN_MESSAGE

        payload: Dict[str, Any] = {
            "code": status_code,
            "message": message,
            "type": type(error).__name__,
        }
        if isinstance(error, ProfileSyncError) and error.detail:
            payload["detail"] = error.detail

        request_id = getattr(request.state, 'request_id', None)
        if request_id:
            payload["request_id"] = request_id

        if self.development:
            payload["traceback"] = traceback.format_exception(
                type(error), error, error.__traceback__
            )

        return status_code, {"error": payload}

    def _log(self, request: Request, error: Exception, status_code: int) -> None:
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "client": request.client.host if request.client else "unknown",
        }
        if status_code >= 500 and not isinstance(error, ProfileSyncError):
            logger.error(f"Unhandled error: {error}", exc_info=True, **fields)
        else:
            logger.warning(f"Request failed: {error}", **fields)


def create_error_handler_middleware(development: bool = False):
    """
    Middleware class and kwargs for `app.add_middleware`.

    Args:
        development: Whether running in development mode
    """
    return ErrorHandlerMiddleware, {"development": development}
