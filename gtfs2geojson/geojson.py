"""GeoJSON envelopes shared by the line and stop builders."""

import json
import math
from typing import Any, Optional


def line_string(coordinates: list[list[float]]) -> dict:
    return {"type": "LineString", "coordinates": coordinates}


def point(lon: float, lat: float) -> dict:
    return {"type": "Point", "coordinates": [lon, lat]}


def feature(feature_id: Optional[str], properties: dict, geometry: dict) -> dict:
    return {
        "type": "Feature",
        "id": feature_id,
        "properties": properties,
        "geometry": geometry,
    }


def feature_collection(features: list[dict]) -> dict:
    return {"type": "FeatureCollection", "features": features}


def to_json_compatible(value: Any) -> Any:
    """Replace NaN and infinite floats with None so the value is strict JSON.

    Unparseable coordinates are kept as NaN in memory and go out as ``null``.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: to_json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(v) for v in value]
    return value


def dumps(collection: dict) -> str:
    return json.dumps(
        to_json_compatible(collection),
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )
