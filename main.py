"""
Backend entry point.

Architecture:
- One Python process, one asyncio event loop
- FastAPI serves the session change API used by the admin dashboard
- The periodic announcer (sends first announcements and retries when the
  email_sent / whatsapp_sent flags are reset) runs elsewhere

We use FastAPI's lifespan to manage startup/shutdown, which gives us
uvicorn's signal handling for free.

Run with: python main.py [--port PORT]
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Set up import paths before any local imports
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

# Load .env.local first (if exists), then .env as fallback
# .env.local is gitignored and used for local dev overrides
load_dotenv(project_root / ".env.local")  # Local overrides (gitignored)
load_dotenv()  # Fallback to .env

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import check_required_env_vars, get_api_port, is_dev_mode
from core.database import close_engine

# Import routes using full paths (don't add web_api to sys.path to avoid main.py conflict)
from web_api.routes.materials import router as materials_router
from web_api.routes.meetings import router as meetings_router
from web_api.routes.sessions import router as sessions_router

logging.basicConfig(
    level=logging.DEBUG if is_dev_mode() else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SENTRY_DSN = os.environ.get("SENTRY_DSN")
if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment="development" if is_dev_mode() else "production",
        traces_sample_rate=0.1,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Reports missing configuration on startup, closes database connections
    on shutdown.
    """
    ok, warnings = check_required_env_vars()
    for warning in warnings:
        logger.warning(warning.strip())
    if not ok:
        raise RuntimeError("Missing required environment variables")

    yield  # FastAPI runs here

    logger.info("Shutting down...")
    await close_engine()  # Close database connections


# Create FastAPI app with lifespan
app = FastAPI(
    title="Mentor Session Scheduling API",
    lifespan=lifespan,
)

# CORS configuration
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(sessions_router)
app.include_router(materials_router)
app.include_router(meetings_router)


@app.get("/api/status")
async def api_status():
    """API status endpoint."""
    return {"status": "ok"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Mentor Session Scheduling Server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port to run the server on (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    # Pass app object directly (not string) to avoid module reimport issues
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
