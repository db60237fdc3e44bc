"""Runtime settings, read from the environment and an optional local .env file."""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before reading any env vars

GTFS_DATA_DIR = os.path.abspath(os.getenv("GTFS_DATA_DIR", "data"))
GTFS_ZIP_FILE = os.getenv("GTFS_ZIP_FILE", os.path.join(GTFS_DATA_DIR, "gtfs_rodalies.zip"))
GTFS_TABLES = [
    name.strip()
    for name in os.getenv("GTFS_TABLES", "shapes.txt,stops.txt,trips.txt,routes.txt").split(",")
    if name.strip()
]

# Upstream live vehicle positions (JSON or GTFS-RT protobuf)
VEHICLE_POSITIONS_URL = os.getenv("VEHICLE_POSITIONS_URL", "https://gtfsrt.renfe.com/vehicle_positions.json")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "10.0"))

STATIC_DIR = os.path.abspath(os.getenv("STATIC_DIR", "public"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

CSV_CHUNK_SIZE = int(os.getenv("CSV_CHUNK_SIZE", "10000"))

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
