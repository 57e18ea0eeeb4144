import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from snti.api.v1.router import api_router
from snti.config import settings
from snti.database import close_db, init_db
from snti.core.exceptions import APIException
from snti.core.logging_config import setup_logging, cleanup_old_logs
from snti.core.logging_utils import get_request_id, sanitize_log_message
from snti.middleware.logging_middleware import LoggingMiddleware
from snti.middleware.rate_limit import setup_rate_limiting
from snti.middleware.security import setup_security_middleware

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
)


@app.on_event("startup")
async def startup_event():
    """Initialize logging, prune old logs and create missing tables."""
    setup_logging()
    cleanup_old_logs()
    if settings.DB_CREATE_ALL:
        await init_db()
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    await close_db()
    logger.info("Application shutdown complete")


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Bootstrap-Token", "Accept", "Origin"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)

# Security middleware (request size limit + security headers)
setup_security_middleware(app, max_request_size=settings.MAX_REQUEST_SIZE)

# Logging middleware assigns the request ID used by every handler below
app.add_middleware(LoggingMiddleware)

# Rate limiting
setup_rate_limiting(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


def _request_context(request: Request) -> dict:
    return {
        "Path": request.url.path,
        "Method": request.method,
        "IP": request.client.host if request.client else None,
        "RequestID": get_request_id(request),
    }


# Exception handlers with logging
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        sanitize_log_message(
            f"{exc.code}: {exc.detail}",
            Status=exc.status_code,
            Error=exc.error,
            **_request_context(request)
        )
    )

    content = {"success": False, "message": exc.detail}
    if exc.error and not (settings.is_production() and exc.status_code >= 500):
        content["error"] = exc.error
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "campo": ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")),
            "mensaje": error.get("msg"),
        }
        for error in exc.errors()
    ]
    logger.warning(
        sanitize_log_message(
            "Request validation failed",
            Errors=errors,
            **_request_context(request)
        )
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"success": False, "message": "Error de validación", "errors": errors})
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(
        sanitize_log_message(
            "HTTP error",
            Status=exc.status_code,
            Detail=exc.detail,
            **_request_context(request)
        )
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None)
    )


# Generic exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(
        sanitize_log_message(
            f"Unhandled exception: {type(exc).__name__}",
            ExceptionMessage=str(exc),
            **_request_context(request)
        )
    )
    content = {"success": False, "message": "Error del servidor"}
    if not settings.is_production():
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.VERSION}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": f"{settings.API_V1_STR}/docs"
    }
