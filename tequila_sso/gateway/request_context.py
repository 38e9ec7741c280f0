# Tequila SSO - Web Single Sign-On Client
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Request Context Middleware

Provides request ID propagation for logging:
- Generates or accepts X-Request-ID header
- Propagates request ID through logging
- Logs request start/end with timing, without the query string
  (it may carry a handshake key)
"""

import logging
import secrets
import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..observability.logging import clear_request_context, set_request_context

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request ID propagation.

    Configuration:
        app.add_middleware(
            RequestContextMiddleware,
            header_name="X-Request-ID",
            log_requests=True,
        )
    """

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
        generate_id: Callable[[], str] | None = None,
        log_requests: bool = True,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generate_id = generate_id or (lambda: secrets.token_hex(16))
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request with context management."""
        request_id = self._sanitize_request_id(
            request.headers.get(self.header_name) or self.generate_id()
        )
        set_request_context(request_id=request_id)
        request.state.request_id = request_id
        start_time = time.time()

        try:
            if self.log_requests:
                logger.info(f"Request started: {request.method} {request.url.path}")

            response = await call_next(request)
            response.headers[self.header_name] = request_id

            if self.log_requests:
                duration_ms = (time.time() - start_time) * 1000
                logger.info(
                    f"Request completed: {request.method} {request.url.path} "
                    f"status={response.status_code} duration={duration_ms:.2f}ms",
                    extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 2)},
                )
            return response

        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.url.path} error={type(e).__name__}",
                exc_info=True,
            )
            raise

        finally:
            clear_request_context()

    def _sanitize_request_id(self, request_id: str) -> str:
        """Keep request IDs short and free of control characters (log injection)."""
        sanitized = "".join(c for c in request_id[:64] if c.isalnum() or c in "-_")
        return sanitized or self.generate_id()


__all__ = [
    "RequestContextMiddleware",
]
