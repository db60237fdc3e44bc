import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from gtfs2geojson import config

logger = logging.getLogger("gtfs2geojson")
logging.basicConfig(level=logging.INFO)

# Global state populated during startup
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check the GTFS inputs and open the shared upstream client on startup."""
    logger.info(f"GTFS data dir: {config.GTFS_DATA_DIR}")
    if not os.path.exists(config.GTFS_ZIP_FILE):
        logger.warning(
            f"GTFS archive {config.GTFS_ZIP_FILE} not found, /getdata will fail "
            "until it is in place"
        )

    # Shared httpx client for the realtime proxy
    http_client = httpx.AsyncClient(
        timeout=config.UPSTREAM_TIMEOUT,
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )
    app_state["http_client"] = http_client
    logger.info(f"Vehicle positions upstream: {config.VEHICLE_POSITIONS_URL}")

    yield

    logger.info("Shutting down...")
    await http_client.aclose()
    app_state.pop("http_client", None)
    logger.info("Shared HTTP client closed")


app = FastAPI(title="gtfs2geojson API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

from gtfs2geojson.routes import router  # noqa: E402

app.include_router(router)

# Static files last so API routes take precedence
if os.path.isdir(config.STATIC_DIR):
    app.mount("/", StaticFiles(directory=config.STATIC_DIR, html=True), name="static")
