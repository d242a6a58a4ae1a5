"""
API Middleware Layer

Provides middleware components for request/response processing:
- Error handling
- CORS (via FastAPI)
"""

from .error_handler import (
    ERROR_STATUS,
    ErrorHandlerMiddleware,
    create_error_handler_middleware,
    status_for_error,
)

__all__ = [
    'ERROR_STATUS',
    'ErrorHandlerMiddleware',
    'create_error_handler_middleware',
    'status_for_error',
]
