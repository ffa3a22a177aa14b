"""
# Logging Utilities

Request logging middleware and structured lifecycle/error log helpers used by the
application entry point.

- `RequestLoggingMiddleware`: one line per request with method, path, status and
  duration; unhandled exceptions are logged with traceback and re-raised.
- `log_application_lifecycle(event, details)`: startup/shutdown milestones.
- `log_error_with_context(error, context)`: an error plus the operation it interrupted.
"""

import time
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from blogsite.managers.logging_manager import get_logger

request_logger = get_logger(prefix="[REQUEST]")
lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


def _format_details(details: Optional[Dict[str, Any]]) -> str:
    if not details:
        return ""
    return " ".join(f"{key}={value}" for key, value in details.items())


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    lifecycle_logger.info("%s %s", event, _format_details(details))


def log_error_with_context(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log `error` at ERROR level with its traceback and the supplied context."""
    error_logger.error(
        "%s: %s %s", type(error).__name__, error, _format_details(context), exc_info=error
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client = request.client.host if request.client else "-"
        try:
            response = await call_next(request)
        except Exception as e:
            log_error_with_context(
                e,
                {
                    "method": request.method,
                    "path": request.url.path,
                    "client": client,
                    "duration": f"{time.time() - start_time:.3f}s",
                },
            )
            raise

        request_logger.info(
            "%s %s -> %d (%.3fs) client=%s",
            request.method,
            request.url.path,
            response.status_code,
            time.time() - start_time,
            client,
        )
        return response
