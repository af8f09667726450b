"""
FastAPI application for the priority engine with Redis lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from priority_engine.config import settings
from priority_engine.features.priority_intelligence import router as priority_router
from priority_engine.features.priority_intelligence.domain.errors import (
    VipContactNotFoundError,
)
from priority_engine.infrastructure.observability.logging import get_logger, setup_logging
from priority_engine.routes import health
from priority_engine.services.redis_client import fast_redis

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    # Scoring does not need Redis; without it registry edits are session-only.
    try:
        logger.info("Initializing Redis connection")
        await fast_redis.initialize()
        logger.info("All services initialized successfully", services=["redis"])
    except Exception as e:
        logger.error("Redis unavailable at startup, persistence degraded", error=str(e))

    yield

    logger.info("Application shutting down")
    try:
        await fast_redis.close()
    except Exception as e:
        logger.error("Error closing Redis", error=str(e))
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Priority Intelligence Engine",
    description="Message priority scoring, VIP registry and time-aware digests",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(priority_router)


@app.exception_handler(VipContactNotFoundError)
async def vip_not_found_handler(request: Request, exc: VipContactNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
