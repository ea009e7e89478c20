from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from journey_planner.adapters.persistence import LocalGtfsRepository
from journey_planner.domain.models import RegionBounds

FILES = {
    "stops.txt": (
        "\ufeffstop_id,stop_name,stop_lat,stop_lon\n"
        "S1,Konak,38.4189,27.1287\n"
        "S2,Çankaya,38,4230,27,1370\n"
    ),
    "routes.txt": "route_id,route_short_name,route_long_name,route_type\nR1,M1,Evka 3 - Fahrettin Altay,1\n",
    "trips.txt": "route_id,service_id,trip_id,trip_headsign\nR1,WK,T1,Fahrettin Altay\n",
    "stop_times.txt": (
        "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
        "T1,08:00:00,08:00:00,S1,1\n"
        "T1,08:02:00,08:02:00,S2,2\n"
    ),
}


def _write_dir(base: Path, files: dict[str, str]) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (base / name).write_text(content, encoding="utf-8")
    return base


@pytest.mark.unit
def test_loads_feed_from_directory(tmp_path: Path) -> None:
    base = _write_dir(tmp_path / "gtfs", FILES)

    feed, report = LocalGtfsRepository(base_path=base).load_feed()

    assert set(feed.stops_by_id) == {"S1", "S2"}
    assert feed.stops_by_id["S2"].lat == pytest.approx(38.4230)
    assert feed.stops_by_id["S2"].lon == pytest.approx(27.1370)
    assert report.coordinate_repairs["comma_split"] == 1
    assert feed.trips_by_id["T1"].headsign == "Fahrettin Altay"


@pytest.mark.unit
def test_loads_feed_from_zip_with_nested_folder(tmp_path: Path) -> None:
    archive = tmp_path / "feed.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        for name, content in FILES.items():
            zf.writestr(f"izmir-gtfs/{name}", content)

    feed, _ = LocalGtfsRepository(base_path=archive).load_feed()

    assert set(feed.routes_by_id) == {"R1"}
    assert len(feed.stop_times_by_trip["T1"]) == 2


@pytest.mark.unit
def test_path_comes_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    base = _write_dir(tmp_path / "gtfs", FILES)
    monkeypatch.setenv("GTFS_PATH", str(base))
    monkeypatch.setenv("GTFS_REGION_BBOX", "38.0,26.5,39.0,27.8")

    repo = LocalGtfsRepository()
    feed, _ = repo.load_feed()

    # The region is passed in by the caller, never read here.
    assert repo.region is None
    assert "S1" in feed.stops_by_id


@pytest.mark.unit
def test_given_region_repairs_swapped_coordinates(tmp_path: Path) -> None:
    files = dict(FILES)
    files["stops.txt"] = (
        "stop_id,stop_name,stop_lat,stop_lon\n"
        "S1,Konak,27.1287,38.4189\n"
        "S2,Cankaya,38.4230,27.1370\n"
    )
    base = _write_dir(tmp_path / "gtfs", files)
    region = RegionBounds(min_lat=38.0, min_lon=26.5, max_lat=39.0, max_lon=27.8)

    unrepaired, _ = LocalGtfsRepository(base_path=base).load_feed()
    feed, report = LocalGtfsRepository(base_path=base, region=region).load_feed()

    assert unrepaired.stops_by_id["S1"].lat == pytest.approx(27.1287)
    assert feed.stops_by_id["S1"].lat == pytest.approx(38.4189)
    assert feed.stops_by_id["S1"].lon == pytest.approx(27.1287)
    assert report.coordinate_repairs["swapped"] == 1


@pytest.mark.unit
def test_missing_required_file_raises(tmp_path: Path) -> None:
    files = {k: v for k, v in FILES.items() if k != "trips.txt"}
    base = _write_dir(tmp_path / "gtfs", files)

    with pytest.raises(FileNotFoundError, match="trips.txt"):
        LocalGtfsRepository(base_path=base).load_feed()


@pytest.mark.unit
def test_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalGtfsRepository(base_path=tmp_path / "nope").load_feed()
