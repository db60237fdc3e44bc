"""Build Point features from GTFS stops.txt."""

import logging
from typing import Optional

from gtfs2geojson.geojson import feature, feature_collection, point
from gtfs2geojson.gtfs_parser import TableSource, parse_float, parse_int, records

logger = logging.getLogger("gtfs2geojson.stops")


def _flag(value: str) -> int:
    return 1 if value else 0


def _int_or_zero(value: str) -> Optional[int]:
    # Blank is 0; text with no leading integer has no value (null)
    return parse_int(value) if value else 0


# Optional stops.txt columns, copied into properties only when the column exists
_OPTIONAL_PROPERTIES = {
    "stop_code": str,
    "location_type": _flag,
    "parent_station": str,
    "stop_timezone": str,
    "wheelchair_boarding": _int_or_zero,
    "platform_code": _int_or_zero,
}


def stop_feature(stop: dict) -> dict:
    """Turn one stops.txt record into a Point feature."""
    properties = {
        "stop_id": stop.get("stop_id"),
        "stop_name": stop.get("stop_name"),
    }
    for name, convert in _OPTIONAL_PROPERTIES.items():
        if name in stop:
            properties[name] = convert(stop[name])

    geometry = point(parse_float(stop.get("stop_lon")), parse_float(stop.get("stop_lat")))
    return feature(stop.get("stop_id"), properties, geometry)


def stops(source: TableSource) -> dict:
    """Parse stops.txt and return a FeatureCollection of Points, in file order.

    Optional attributes depend on the columns of the file, not on the cells:
    a stops.txt without ``wheelchair_boarding`` gives features without that
    property, while an empty ``wheelchair_boarding`` cell gives ``0``.
    """
    features = [stop_feature(stop) for stop in records(source)]
    logger.info(f"Built {len(features)} stop points")
    return feature_collection(features)
