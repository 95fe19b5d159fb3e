"""
Middleware for the Kitchen Kompanion Assistant Service
Request tracing and response headers
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from .models import ErrorResponse, ErrorType

logger = structlog.get_logger()

SERVICE_NAME = "kitchen-kompanion-assistant"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Add request tracing and timing information"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        start_time = time.time()

        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            process_time = time.time() - start_time

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = str(round(process_time, 4))
            response.headers["X-Service"] = SERVICE_NAME

            logger.info(
                "Request completed",
                request_id=request_id,
                status_code=response.status_code,
                process_time=round(process_time, 4),
            )

            return response

        except Exception as exc:
            process_time = time.time() - start_time

            logger.error(
                "Request failed",
                request_id=request_id,
                error=str(exc),
                error_type=type(exc).__name__,
                process_time=round(process_time, 4),
            )

            error_response = ErrorResponse(
                error_type=ErrorType.INTERNAL_ERROR,
                detail="Internal server error",
                request_id=request_id
            )

            return JSONResponse(
                status_code=500,
                content=error_response.model_dump(mode="json"),
                headers={"X-Request-ID": request_id}
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
