"""
Main FastAPI application factory
The lifespan is the composition root that owns the AI service selection policy
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from config import get_settings, validate_production_config
from kitchen_ai import AiServiceFactory, GenerationFault, InMemoryPreferenceStore
from .middleware import RequestTracingMiddleware, SecurityHeadersMiddleware
from .models import ErrorResponse, ErrorType
from .routes import assistant_router, backend_router, health_router

logger = structlog.get_logger()


def configure_logging(level_name: str) -> None:
    """Structured logs for the API layer, stdlib logging for the engine"""
    level = getattr(logging, level_name)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _error_json(status_code: int, error_type: ErrorType, detail: str, request: Request, errors=None) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', None)
    kwargs = {"request_id": request_id} if request_id else {}
    error_response = ErrorResponse(error_type=error_type, detail=detail, errors=errors, **kwargs)
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
        headers={"X-Request-ID": request_id} if request_id else {}
    )


def create_app(ai_factory: Optional[AiServiceFactory] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = get_settings()
    configure_logging(settings.log_level.value)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Kitchen Kompanion Assistant", version=settings.app_version)

        if settings.is_production:
            config_issues = validate_production_config(settings)
            for issue in config_issues:
                logger.error(f"Configuration issue: {issue}")

        factory = ai_factory or AiServiceFactory.from_settings(
            settings,
            InMemoryPreferenceStore.from_settings(settings),
        )
        app.state.ai_factory = factory
        await run_in_threadpool(factory.get_instance)
        logger.info("AI service ready", backend=factory.current_backend_label())

        yield

        logger.info("Shutting down Kitchen Kompanion Assistant")
        factory.shutdown()

    app = FastAPI(
        title=settings.app_name,
        description="On-device cooking assistant: recipes, grocery lists, substitutions and chat",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    # Middleware runs in reverse registration order; tracing is outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestTracingMiddleware)

    error_type_map = {
        400: ErrorType.VALIDATION_ERROR,
        404: ErrorType.NOT_FOUND,
        405: ErrorType.VALIDATION_ERROR,
        422: ErrorType.VALIDATION_ERROR,
        500: ErrorType.INTERNAL_ERROR,
        503: ErrorType.SERVICE_UNAVAILABLE,
        504: ErrorType.TIMEOUT_ERROR,
    }

    @app.exception_handler(StarletteHTTPException)
    async def custom_http_exception_handler(request: Request, exc: StarletteHTTPException):
        """HTTP errors with the standardized error body"""
        return _error_json(
            exc.status_code,
            error_type_map.get(exc.status_code, ErrorType.INTERNAL_ERROR),
            str(exc.detail),
            request,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Request validation errors, one entry per field"""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            })
        return _error_json(422, ErrorType.VALIDATION_ERROR, "Request validation failed", request, errors)

    @app.exception_handler(GenerationFault)
    async def generation_fault_handler(request: Request, exc: GenerationFault):
        """The backend reported an error through its callback"""
        logger.warning("Assistant generation failed", error=exc.message)
        return _error_json(502, ErrorType.GENERATION_ERROR, exc.message, request)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        detail = str(exc) if not settings.is_production else "Internal server error"
        return _error_json(500, ErrorType.INTERNAL_ERROR, detail, request)

    app.include_router(health_router)
    app.include_router(assistant_router)
    app.include_router(backend_router)

    return app
