import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from unlocker_probe.api.routes import router
from unlocker_probe.core.config import settings
from unlocker_probe.core.logs import configure_logging

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Configure logging on startup and report which credentials are present.
    """
    configure_logging(settings.LOG_LEVEL)
    logger.info("Bright Data Unlocker Test API starting on port %s", settings.PORT)
    logger.info("Unlocker API key configured: %s", bool(settings.BRIGHT_DATA_API_KEY))
    logger.info("Unlocker proxy configured: %s", bool(settings.PROXY_USERNAME and settings.PROXY_PASSWORD))

    yield

    logger.info("Shutting down Bright Data Unlocker Test API...")

app = FastAPI(
    title="Bright Data Unlocker Test API",
    description="Diagnostics for the Unlocker REST API and the Unlocker proxy",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include API routes
app.include_router(router)

@app.get("/")
async def root():
    """Root endpoint with API documentation"""
    return {
        "service": "Bright Data Unlocker Test API",
        "version": "1.0.0",
        "endpoints": {
            "GET /health": "Health check endpoint",
            "GET /test": "Test Unlocker (query: url, mode, full)",
            "POST /test": "Test Unlocker (body: { url, mode, full })",
            "GET /fetch": "Fetch full raw content (query: url, mode)",
            "POST /fetch": "Fetch full raw content (body: { url, mode })"
        },
        "fullContent": {
            "/test?full=true": f"Include full content in JSON response (max {settings.MAX_CONTENT_SIZE} characters)",
            "/fetch": f"Return raw content directly (XML, HTML, etc.) - max {settings.MAX_CONTENT_SIZE} characters"
        },
        "examples": {
            f"GET /test?url={settings.DEFAULT_TARGET_URL}&mode=api": "Test with preview",
            "GET /test?url=...&mode=api&full=true": "Test with full content in JSON",
            f"GET /fetch?url={settings.DEFAULT_TARGET_URL}&mode=api": "Get full XML/HTML raw"
        },
        "modes": {
            "api": "Use Bright Data Unlocker REST API",
            "native": "Use native proxy with Unlocker zone"
        }
    }
