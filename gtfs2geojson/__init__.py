"""Convert GTFS shapes, trips, routes and stops tables into GeoJSON."""

from gtfs2geojson.errors import ArchiveError, Gtfs2GeojsonError, OutOfOrderError, UpstreamError
from gtfs2geojson.transit_lines import lines, lines_with_routes
from gtfs2geojson.transit_stops import stops

__all__ = [
    "ArchiveError",
    "Gtfs2GeojsonError",
    "OutOfOrderError",
    "UpstreamError",
    "lines",
    "lines_with_routes",
    "stops",
]
