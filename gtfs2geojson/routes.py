import asyncio
import logging
from pathlib import Path

import httpx
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, PlainTextResponse
from google.protobuf.message import DecodeError

from gtfs2geojson import config
from gtfs2geojson.errors import ArchiveError, OutOfOrderError, UpstreamError
from gtfs2geojson.geojson import dumps
from gtfs2geojson.gtfs_archive import extract_tables, has_tables, table_path
from gtfs2geojson.gtfs_realtime import fetch_vehicle_positions
from gtfs2geojson.models import ErrorResponse, ExtractResponse, HealthResponse
from gtfs2geojson.transit_lines import lines, lines_with_routes
from gtfs2geojson.transit_stops import stops

logger = logging.getLogger("gtfs2geojson.routes")

router = APIRouter()


class GeoJSONResponse(JSONResponse):
    """JSON response that writes NaN coordinates as null."""

    def render(self, content) -> bytes:
        return dumps(content).encode("utf-8")


def _get_state():
    from gtfs2geojson.main import app_state
    return app_state


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _table(name: str) -> Path:
    # A Path, since a plain str is read as table content
    return Path(table_path(config.GTFS_DATA_DIR, name))


def _extracted(*names: str) -> bool:
    return has_tables(config.GTFS_DATA_DIR, names)


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(service="gtfs2geojson API")


@router.api_route("/getdata", methods=["GET", "POST"], response_model=ExtractResponse)
async def get_data():
    """Extract the GTFS tables from the feed archive into the data directory."""
    try:
        files = await asyncio.to_thread(
            extract_tables, config.GTFS_ZIP_FILE, config.GTFS_DATA_DIR, config.GTFS_TABLES
        )
    except (ArchiveError, OSError) as e:
        logger.error(f"GTFS extraction failed: {e}")
        return _error(500, str(e))

    return ExtractResponse(msg="GTFS files extracted", files=files)


@router.get("/stops")
async def get_stops():
    """Stops as a FeatureCollection of Points."""
    if not _extracted("stops.txt"):
        return _error(400, "stops.txt does not exist. Call /getdata first")

    collection = await asyncio.to_thread(stops, _table("stops.txt"))
    return GeoJSONResponse(collection)


@router.get("/shapes")
async def get_shapes():
    """Shapes as LineStrings coloured by the route they serve."""
    if not _extracted("shapes.txt", "trips.txt", "routes.txt"):
        return _error(400, "Incomplete GTFS. Call /getdata first")

    collection = await asyncio.to_thread(
        lines_with_routes, _table("shapes.txt"), _table("trips.txt"), _table("routes.txt")
    )
    return GeoJSONResponse(collection)


@router.get("/lines")
async def get_lines(assume_ordered: bool = Query(False)):
    """Shapes as plain LineStrings.

    With assume_ordered, shapes.txt is streamed and must be sorted by shape_id
    and shape_pt_sequence.
    """
    if not _extracted("shapes.txt"):
        return _error(400, "shapes.txt does not exist. Call /getdata first")

    try:
        collection = await asyncio.to_thread(lines, _table("shapes.txt"), assume_ordered)
    except OutOfOrderError as e:
        logger.warning(f"shapes.txt is not ordered: {e}")
        return _error(422, str(e))
    return GeoJSONResponse(collection)


@router.get("/api/trenes")
async def get_trains():
    """Proxy for the upstream live vehicle positions."""
    state = _get_state()
    http_client = state.get("http_client")

    try:
        if http_client is None:
            async with httpx.AsyncClient(timeout=config.UPSTREAM_TIMEOUT) as client:
                return await fetch_vehicle_positions(client)
        return await fetch_vehicle_positions(http_client)
    except UpstreamError as e:
        return PlainTextResponse("Error fetching vehicle positions", status_code=e.status_code)
    except (httpx.HTTPError, ValueError, DecodeError) as e:
        logger.error(f"Vehicle positions proxy error: {e}")
        return _error(500, "Error fetching real-time vehicle positions")
