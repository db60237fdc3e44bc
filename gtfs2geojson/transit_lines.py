"""Build LineString features from GTFS shapes.txt.

Two ways of assembling shapes:

* ordered: shapes.txt is trusted to be sorted by shape_id then
  shape_pt_sequence, so rows are streamed and only one shape is held in
  memory at a time. A repeated shape_id run or a non-increasing sequence
  raises OutOfOrderError.
* unordered (default, since GTFS does not mandate any ordering): the whole
  table is buffered, grouped by shape_id in first-seen order and each group
  sorted by shape_pt_sequence.

``lines_with_routes`` adds route identity and colours to each shape through
trips.txt and routes.txt.
"""

import logging
from typing import Iterable, Optional

import pandas as pd

from gtfs2geojson.errors import OutOfOrderError
from gtfs2geojson.geojson import feature, feature_collection, line_string
from gtfs2geojson.gtfs_parser import (
    TableSource,
    column,
    iter_records,
    parse_float,
    parse_int,
    read_table,
)

logger = logging.getLogger("gtfs2geojson.lines")

DEFAULT_ROUTE_COLOR = "000000"
DEFAULT_ROUTE_TEXT_COLOR = "FFFFFF"


def _shape_feature(shape_id: str, coordinates: list[list[float]], **properties) -> dict:
    return feature(shape_id, {"shape_id": shape_id, **properties}, line_string(coordinates))


def _assemble_ordered(rows: Iterable[dict]) -> list[dict]:
    features = []
    finalized = set()

    shape_id = None
    coordinates: list[list[float]] = []
    last_sequence: Optional[int] = None

    for row in rows:
        row_shape_id = row.get("shape_id", "")
        if row_shape_id != shape_id:
            if shape_id is not None:
                features.append(_shape_feature(shape_id, coordinates))
                finalized.add(shape_id)
            if row_shape_id in finalized:
                raise OutOfOrderError(row_shape_id)

            shape_id = row_shape_id
            coordinates = []
            last_sequence = None

        raw_sequence = row.get("shape_pt_sequence", "")
        sequence = parse_int(raw_sequence)
        # A sequence that can't be read can't be shown to increase
        if sequence is None or (last_sequence is not None and sequence <= last_sequence):
            raise OutOfOrderError(shape_id, raw_sequence)
        last_sequence = sequence

        coordinates.append([parse_float(row.get("shape_pt_lon")), parse_float(row.get("shape_pt_lat"))])

    if shape_id is not None:
        features.append(_shape_feature(shape_id, coordinates))

    return features


def group_shapes(shapes_df: pd.DataFrame) -> dict[str, list[list[float]]]:
    """Group shape points into coordinate lists keyed by shape_id.

    Keys follow the order in which each shape_id first appears. Within a
    shape, points are in ascending shape_pt_sequence order; equal sequences
    keep their file order and unreadable sequences go last.
    """
    if shapes_df.empty:
        return {}

    sequences = column(shapes_df, "shape_pt_sequence")
    points = pd.DataFrame({
        "shape_id": column(shapes_df, "shape_id"),
        # Plain Python ints, any size; None for unreadable cells
        "sequence": pd.Series([parse_int(s) for s in sequences], index=sequences.index, dtype=object),
        "lon": column(shapes_df, "shape_pt_lon").map(parse_float).astype(float),
        "lat": column(shapes_df, "shape_pt_lat").map(parse_float).astype(float),
    })
    codes, shape_ids = pd.factorize(points["shape_id"])
    points["group"] = codes

    # Two stable passes: by sequence, then by first-seen shape
    points = points.sort_values("sequence", kind="stable", na_position="last")
    points = points.sort_values("group", kind="stable")

    return {
        shape_ids[code]: group[["lon", "lat"]].to_numpy().tolist()
        for code, group in points.groupby("group", sort=True)
    }


def lines(source: TableSource, assume_ordered: bool = False) -> dict:
    """Parse shapes.txt and return a FeatureCollection of LineStrings.

    Args:
        source: shapes.txt content, path or readable stream.
        assume_ordered: if True, shapes.txt is assumed to be ordered by
            shape_id and shape_pt_sequence, which lowers memory use and
            processing time. Raises OutOfOrderError on the first row that
            breaks that ordering; no collection is returned in that case.
    """
    if assume_ordered:
        features = _assemble_ordered(iter_records(source))
    else:
        features = [
            _shape_feature(shape_id, coordinates)
            for shape_id, coordinates in group_shapes(read_table(source)).items()
        ]

    logger.info(f"Built {len(features)} shape lines (assume_ordered={assume_ordered})")
    return feature_collection(features)


def _route_by_shape(trips_df: pd.DataFrame) -> dict[str, str]:
    """shape_id → route_id, the first trip listed for a shape wins."""
    if trips_df.empty:
        return {}

    trips = pd.DataFrame({
        "shape_id": column(trips_df, "shape_id"),
        "route_id": column(trips_df, "route_id"),
    })
    trips = trips[(trips["shape_id"] != "") & (trips["route_id"] != "")]
    trips = trips.drop_duplicates(subset="shape_id", keep="first")
    return dict(zip(trips["shape_id"], trips["route_id"]))


def _route_colors(routes_df: pd.DataFrame) -> dict[str, tuple[str, str]]:
    """route_id → (route_color, route_text_color), blanks filled with defaults."""
    if routes_df.empty:
        return {}

    colors = {}
    for route_id, color, text_color in zip(
        column(routes_df, "route_id"),
        column(routes_df, "route_color"),
        column(routes_df, "route_text_color"),
    ):
        colors[route_id] = (color or DEFAULT_ROUTE_COLOR, text_color or DEFAULT_ROUTE_TEXT_COLOR)
    return colors


def lines_with_routes(shapes_source: TableSource, trips_source: TableSource, routes_source: TableSource) -> dict:
    """Build shape LineStrings carrying the route_id and colours of their route.

    A shape with no trip, or whose route is missing from routes.txt, gets
    ``route_id`` None (only when there is no trip) and the default colours.
    """
    shapes = group_shapes(read_table(shapes_source))
    shape_to_route = _route_by_shape(read_table(trips_source))
    route_colors = _route_colors(read_table(routes_source))

    features = []
    unmatched = 0
    for shape_id, coordinates in shapes.items():
        route_id = shape_to_route.get(shape_id)
        colors = route_colors.get(route_id) if route_id else None
        if colors is None:
            unmatched += 1
            colors = (DEFAULT_ROUTE_COLOR, DEFAULT_ROUTE_TEXT_COLOR)

        features.append(_shape_feature(
            shape_id,
            coordinates,
            route_id=route_id,
            route_color=colors[0],
            route_text_color=colors[1],
        ))

    if unmatched:
        logger.info(f"{unmatched} shapes without a matching trip or route, using default colors")
    logger.info(f"Built {len(features)} route lines from {len(route_colors)} routes")
    return feature_collection(features)
