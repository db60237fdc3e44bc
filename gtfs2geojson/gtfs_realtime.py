"""Relay the upstream live vehicle-positions feed.

The feed is passed through as JSON. Feeds served as GTFS-RT protobuf are
decoded and relayed as their JSON mapping, with proto field names kept.
"""

import logging
from typing import Optional

import httpx
from google.protobuf import json_format
from google.transit import gtfs_realtime_pb2

from gtfs2geojson import config
from gtfs2geojson.errors import UpstreamError

logger = logging.getLogger("gtfs2geojson.realtime")

_PROTOBUF_CONTENT_TYPES = ("application/x-protobuf", "application/protobuf", "application/octet-stream")


def _is_protobuf(resp: httpx.Response) -> bool:
    content_type = resp.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in _PROTOBUF_CONTENT_TYPES:
        return True
    return resp.request.url.path.endswith(".pb")


def decode_feed(content: bytes) -> dict:
    """Decode a GTFS-RT FeedMessage into a plain dict."""
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.ParseFromString(content)
    return json_format.MessageToDict(feed, preserving_proto_field_name=True)


async def fetch_vehicle_positions(
    http_client: httpx.AsyncClient,
    url: Optional[str] = None,
) -> dict:
    """Fetch current vehicle positions from the upstream feed.

    Raises UpstreamError when the feed answers with a non-2xx status; transport
    errors from httpx propagate unchanged.
    """
    url = url or config.VEHICLE_POSITIONS_URL
    resp = await http_client.get(url)
    if not resp.is_success:
        logger.warning(f"Vehicle positions feed returned {resp.status_code}")
        raise UpstreamError(resp.status_code, url)

    if _is_protobuf(resp):
        data = decode_feed(resp.content)
    else:
        data = resp.json()

    if isinstance(data, dict):
        logger.debug(f"Fetched {len(data.get('entity', []))} vehicle position entities")
    return data
