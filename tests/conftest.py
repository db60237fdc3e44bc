"""
fixtures shared by the gtfs2geojson tests: a small GTFS feed written out as
text tables, the same feed zipped, and an API client pointed at both
"""

import zipfile
from pathlib import Path
from typing import Iterator

import pytest
from _pytest.monkeypatch import MonkeyPatch
from fastapi.testclient import TestClient

from gtfs2geojson import config

SHAPES_TXT = """shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence
R1_A,41.10,2.10,1
R1_A,41.20,2.20,2
R1_A,41.30,2.30,3
R2_A,41.50,2.50,10
R2_A,41.60,2.60,20
R9_X,40.00,1.00,1
"""

TRIPS_TXT = """route_id,service_id,trip_id,shape_id
R1,WK,T1,R1_A
R1,WK,T2,R1_A
R2,WK,T3,R2_A
"""

ROUTES_TXT = """route_id,route_short_name,route_color,route_text_color
R1,R1,73B0DF,FFFFFF
R2,R2,009640,
"""

STOPS_TXT = """stop_id,stop_name,stop_lat,stop_lon,location_type,parent_station,wheelchair_boarding
71801,Barcelona-Passeig de Gràcia,41.3919,2.1650,,,1
79400,Barcelona-Estació de França,41.3842,2.1835,1,,
"""

FEED = {
    "shapes.txt": SHAPES_TXT,
    "trips.txt": TRIPS_TXT,
    "routes.txt": ROUTES_TXT,
    "stops.txt": STOPS_TXT,
}


@pytest.fixture(name="gtfs_zip")
def fixture_gtfs_zip(tmp_path: Path) -> Path:
    """the feed tables zipped, the way the agency publishes them"""
    zip_path = tmp_path / "gtfs_rodalies.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        for name, content in FEED.items():
            zf.writestr(name, content)
    return zip_path


@pytest.fixture(name="data_dir")
def fixture_data_dir(tmp_path: Path) -> Path:
    """an empty data dir, nothing extracted yet"""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture(name="extracted_dir")
def fixture_extracted_dir(data_dir: Path) -> Path:
    """a data dir holding the already extracted tables"""
    for name, content in FEED.items():
        (data_dir / name).write_text(content, encoding="utf-8")
    return data_dir


@pytest.fixture(name="client")
def fixture_client(
    monkeypatch: MonkeyPatch, data_dir: Path, gtfs_zip: Path
) -> Iterator[TestClient]:
    """
    API client reading tables from the per-test data dir. the lifespan is not
    entered, so no shared upstream client exists unless a test installs one.
    """
    monkeypatch.setattr(config, "GTFS_DATA_DIR", str(data_dir))
    monkeypatch.setattr(config, "GTFS_ZIP_FILE", str(gtfs_zip))

    from gtfs2geojson.main import app

    yield TestClient(app)
