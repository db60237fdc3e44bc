import asyncio
from typing import Callable, Iterator

import httpx
import pytest
from _pytest.monkeypatch import MonkeyPatch
from fastapi.testclient import TestClient
from google.transit import gtfs_realtime_pb2

from gtfs2geojson.errors import UpstreamError
from gtfs2geojson.gtfs_realtime import decode_feed, fetch_vehicle_positions

FEED_JSON = {
    "header": {"gtfsRealtimeVersion": "2.0", "timestamp": "1760800000"},
    "entity": [
        {
            "id": "VP_R2N-1",
            "vehicle": {
                "trip": {"tripId": "T1"},
                "position": {"latitude": 41.38, "longitude": 2.17},
                "vehicle": {"id": "1", "label": "R2N-77654"},
            },
        }
    ],
}


def _feed_bytes() -> bytes:
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    entity = feed.entity.add()
    entity.id = "VP_R2N-1"
    entity.vehicle.vehicle.id = "1"
    entity.vehicle.position.latitude = 41.38
    entity.vehicle.position.longitude = 2.17
    return feed.SerializeToString()


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _fetch(handler, url: str):
    """run fetch_vehicle_positions against a mocked upstream, closing the client"""

    async def run():
        async with _mock_client(handler) as client:
            return await fetch_vehicle_positions(client, url)

    return asyncio.run(run())


@pytest.fixture(name="install_upstream")
def fixture_install_upstream(monkeypatch: MonkeyPatch) -> Iterator[Callable]:
    """
    install a mocked upstream as the app's shared http client. every client
    installed is closed once the test is done
    """
    from gtfs2geojson.main import app_state

    clients = []

    def install(handler) -> None:
        client = _mock_client(handler)
        clients.append(client)
        monkeypatch.setitem(app_state, "http_client", client)

    yield install

    for client in clients:
        asyncio.run(client.aclose())


def test_fetch_json_is_relayed_verbatim() -> None:
    data = _fetch(
        lambda request: httpx.Response(200, json=FEED_JSON),
        "https://upstream.test/vehicle_positions.json",
    )

    assert data == FEED_JSON


def test_fetch_protobuf_is_decoded() -> None:
    data = _fetch(
        lambda request: httpx.Response(
            200, content=_feed_bytes(), headers={"content-type": "application/x-protobuf"}
        ),
        "https://upstream.test/vehicle_positions",
    )

    assert data["header"]["gtfs_realtime_version"] == "2.0"
    [entity] = data["entity"]
    assert entity["id"] == "VP_R2N-1"
    assert entity["vehicle"]["vehicle"]["id"] == "1"
    assert entity["vehicle"]["position"]["latitude"] == pytest.approx(41.38, abs=1e-4)


def test_fetch_protobuf_by_extension() -> None:
    data = _fetch(
        lambda request: httpx.Response(200, content=_feed_bytes()),
        "https://upstream.test/vehicle_positions.pb",
    )

    assert data["entity"][0]["id"] == "VP_R2N-1"


def test_fetch_upstream_error_status() -> None:
    with pytest.raises(UpstreamError) as excinfo:
        _fetch(
            lambda request: httpx.Response(503, text="down"),
            "https://upstream.test/vehicle_positions.json",
        )

    assert excinfo.value.status_code == 503


def test_decode_feed_matches_fields() -> None:
    assert decode_feed(_feed_bytes())["entity"][0]["vehicle"]["position"]["longitude"] == pytest.approx(2.17, abs=1e-4)


def test_trenes_proxy(client: TestClient, install_upstream: Callable) -> None:
    install_upstream(lambda request: httpx.Response(200, json=FEED_JSON))

    resp = client.get("/api/trenes")

    assert resp.status_code == 200
    assert resp.json() == FEED_JSON


def test_trenes_proxy_passes_upstream_status(client: TestClient, install_upstream: Callable) -> None:
    install_upstream(lambda request: httpx.Response(404))

    resp = client.get("/api/trenes")

    assert resp.status_code == 404
    assert resp.text == "Error fetching vehicle positions"


def test_trenes_proxy_transport_failure(client: TestClient, install_upstream: Callable) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    install_upstream(handler)

    resp = client.get("/api/trenes")

    assert resp.status_code == 500
    assert "error" in resp.json()
