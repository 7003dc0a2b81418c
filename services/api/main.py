"""
SaySo - Family Quotes API
FastAPI backend for capturing what the kids say and turning it into books.
Storage backends: SQLite (any SQLAlchemy URL) or JSON files.

Install dependencies:
pip install -e ".[test]"

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from collections import defaultdict
from contextlib import asynccontextmanager
import contextvars
import logging
import os
import time
import uuid

from settings import get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)
request_start_time_var = contextvars.ContextVar('request_start_time', default=None)

# ========== Metrics Storage ==========
request_metrics = {
    "total_requests": defaultdict(int),  # by endpoint
    "total_latency": defaultdict(float),  # by endpoint
    "status_codes": defaultdict(int),  # by status code
}

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================================
# BACKEND CONFIGURATION
# ============================================================================
settings = get_settings()

STORAGE_BACKEND = settings.storage_backend.lower()

logger.info(f"🔧 Storage Backend: {STORAGE_BACKEND.upper()}")

# ============================================================================
# STORAGE ADAPTER INITIALIZATION
# ============================================================================

def build_storage_adapter(backend: str, *, db_url: str, json_data_dir: str):
    if backend == "sqlite":
        from adapters.sqlite import SqliteAdapter

        adapter = SqliteAdapter.from_url(db_url)
        logger.info(f"✓ SQLite adapter initialized ({db_url.split('://')[0]})")
        return adapter

    if backend == "json":
        from adapters.json import JsonAdapter

        adapter = JsonAdapter(json_data_dir)
        logger.info(f"✓ JSON adapter initialized ({json_data_dir})")
        return adapter

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


try:
    storage_adapter = build_storage_adapter(
        STORAGE_BACKEND,
        db_url=settings.db_url,
        json_data_dir=settings.json_data_dir,
    )
except Exception as e:
    logger.error(f"✗ Failed to initialize storage: {e}")
    raise


# ---- DI helper (used by routers/*) ----
def get_storage_adapter():
    return storage_adapter


# ============================================================================
# FASTAPI APP
# ============================================================================

startup_time = time.time()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    global startup_time
    startup_time = time.time()
    logger.info("SaySo API starting up...")
    logger.info(f"Storage Backend: {STORAGE_BACKEND.upper()}")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")
    yield
    logger.info("SaySo API shutting down...")
    engine = getattr(storage_adapter, "engine", None)
    if engine is not None:
        engine.dispose()


app = FastAPI(
    title="SaySo API",
    description="Capture family quotes and memories; design and render photo books",
    version="1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    # Generate request ID
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    request_start_time_var.set(time.time())

    # Process request
    response = await call_next(request)

    # Calculate latency
    latency = time.time() - request_start_time_var.get()

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({round(latency * 1000, 2)} ms) [{request_id}]"
    )

    # Update metrics
    endpoint = f"{request.method} {request.url.path}"
    request_metrics["total_requests"][endpoint] += 1
    request_metrics["total_latency"][endpoint] += latency
    request_metrics["status_codes"][response.status_code] += 1

    # Add request_id to response headers
    response.headers["X-Request-ID"] = request_id

    return response

ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        get_storage_adapter().ping()
        return {
            "status": "healthy",
            "backend": STORAGE_BACKEND,
            "version": "1.0"
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "backend": STORAGE_BACKEND, "error": str(e)}
        )


@app.get("/healthz")
async def healthz():
    """
    Liveness probe: is the process alive and responding?
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": "1.0"
    }


@app.get("/readyz")
async def readyz():
    """
    Readiness probe: can storage be reached?
    Returns 200 if ready, 503 if not ready.
    """
    try:
        get_storage_adapter().ping()
        return {
            "status": "ready",
            "backend": STORAGE_BACKEND,
            "timestamp": time.time()
        }
    except Exception as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "backend": STORAGE_BACKEND,
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/metrics")
async def get_metrics():
    """
    Request counts, latencies and uptime.
    """
    avg_latencies = {}
    for endpoint, total_latency in request_metrics["total_latency"].items():
        count = request_metrics["total_requests"][endpoint]
        avg_latencies[endpoint] = round((total_latency / count) * 1000, 2) if count > 0 else 0

    total_requests = sum(request_metrics["total_requests"].values())
    total_latency = sum(request_metrics["total_latency"].values())

    return {
        "timestamp": time.time(),
        "uptime_seconds": round(time.time() - startup_time, 2),
        "backend": STORAGE_BACKEND,
        "requests": {
            "by_endpoint": dict(request_metrics["total_requests"]),
            "by_status": dict(request_metrics["status_codes"]),
            "total": total_requests,
        },
        "latency": {
            "by_endpoint_ms": avg_latencies,
            "average_ms": round(total_latency / total_requests * 1000, 2) if total_requests > 0 else 0,
        },
    }


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "SaySo API",
        "version": "1.0",
        "backend": STORAGE_BACKEND,
        "status": "running",
        "docs": "/docs"
    }


from routers import households as households_router
app.include_router(households_router.router)

from routers import persons as persons_router
app.include_router(persons_router.router)

from routers import entries as entries_router
app.include_router(entries_router.router)

from routers import imports as imports_router
app.include_router(imports_router.router)

from routers import books as books_router
app.include_router(books_router.router)

from routers import pages as pages_router
app.include_router(pages_router.router)

from routers import photos as photos_router
app.include_router(photos_router.router)

from routers import layouts as layouts_router
app.include_router(layouts_router.router)

from routers import sms as sms_router
app.include_router(sms_router.router)

from routers import reminders as reminders_router
app.include_router(reminders_router.router)

from routers import export as export_router
app.include_router(export_router.router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
