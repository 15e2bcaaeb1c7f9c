"""
FastAPI application entry point.

Sets up the application with middleware, routers, and the startup wiring
that connects training events to their side effects.
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routers import training, periodization, recommendations, nutrition, wellness
from core.config import settings
from core.database import check_db_connection
from core.logging import setup_logging
from core.realtime import get_redis_client
from services.ai_core import get_ai_core
from services.workout_sessions import register_ai_core_feed
import logging
import time
import uuid

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Training Intelligence API",
    description="Volume landmarks, training metrics, recommendations and periodization",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)


@app.on_event("startup")
async def wire_session_feed():
    """Forward completed-session summaries to the AI core."""
    register_ai_core_feed(get_ai_core())
    logger.info(f"AI core session feed registered (configured={bool(settings.AI_CORE_URL)})")


# CORS middleware
# Production: set CORS_ORIGINS env var (comma-separated)
# Development: DEBUG=True allows all origins
if settings.DEBUG:
    allowed_origins = ["*"]
elif settings.CORS_ORIGINS:
    allowed_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


REQUEST_ID_HEADER = "X-Request-ID"


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag each request with an id and log method, path, status and latency."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    fields = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    }
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            exc_info=True,
            extra={"extra_fields": fields},
        )
        raise

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms} ms)",
        extra={"extra_fields": {**fields, "status_code": response.status_code, "duration_ms": elapsed_ms}},
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# Error handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything a router did not translate into an APIException ends up here as a 500."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True,
        extra={"extra_fields": {"request_id": getattr(request.state, "request_id", None)}},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again."},
    )


@app.get("/health")
async def health():
    """
    Health check for load balancers and uptime monitors.

    Returns:
        - 200: database reachable (Redis is reported but optional)
        - 503: database unavailable
    """
    if not check_db_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database": "unavailable",
            }
        )

    return {
        "status": "healthy",
        "realtime": "available" if get_redis_client() is not None else "unavailable",
        "timestamp": time.time(),
    }


# Include routers
app.include_router(training.router)
app.include_router(periodization.router)
app.include_router(recommendations.router)
app.include_router(nutrition.router)
app.include_router(wellness.router)
