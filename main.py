from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from portal.core.config import settings
from portal.core.exceptions import PortalError, SessionExpiredError
from portal.core.redis import get_redis, close_redis
from portal.api.routes import auth, attendance, leaves, projects, admin, financial
import logging

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Portal for attendance, leaves, projects and HR reporting"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/portal")
app.include_router(attendance.router, prefix="/api/portal")
app.include_router(leaves.router, prefix="/api/portal")
app.include_router(projects.router, prefix="/api/portal")
app.include_router(admin.router, prefix="/api/portal")
app.include_router(financial.router, prefix="/api/portal")


@app.exception_handler(SessionExpiredError)
async def session_expired_handler(request: Request, exc: SessionExpiredError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "redirect": exc.redirect}
    )


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    logger.info("Starting up...")
    try:
        redis = await get_redis()
        await redis.ping()
        logger.info("✅ Redis connected")
    except Exception as e:
        logger.warning(f"⚠️ Redis connection failed: {e}")

    logger.info(f"✅ Application started, backend at {settings.BACKEND_URL}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down...")
    await close_redis()
    logger.info("✅ Application stopped")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Digiwing ERP Portal API",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    try:
        redis = await get_redis()
        redis_status = "connected" if await redis.ping() else "disconnected"
    except Exception:
        redis_status = "disconnected"

    return {
        "status": "healthy",
        "redis": redis_status,
        "version": settings.APP_VERSION
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
