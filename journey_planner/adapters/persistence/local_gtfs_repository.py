from __future__ import annotations

import csv
import io
import logging
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path

from journey_planner.app.ports.output import IGtfsRepository
from journey_planner.domain.algorithms.gtfs_normalizer import RawFeed, RawRow, normalize_feed
from journey_planner.domain.models import FeedReport, GtfsFeed, RegionBounds

logger = logging.getLogger(__name__)

REQUIRED_FILES = ("stops.txt", "routes.txt", "trips.txt", "stop_times.txt")
OPTIONAL_FILES = ("shapes.txt",)


@dataclass(slots=True)
class LocalGtfsRepository(IGtfsRepository):
    """Loads and normalizes a GTFS feed from a directory of .txt files or a .zip.

    Env vars:
      - GTFS_PATH: directory or zip archive containing stops.txt, routes.txt,
        trips.txt, stop_times.txt (and optionally shapes.txt)

    `region`, when given, is the box used to repair malformed stop coordinates.
    """

    base_path: str | Path | None = None
    region: RegionBounds | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def load_feed(self) -> tuple[GtfsFeed, FeedReport]:
        base = self._base()
        if base.is_file() and zipfile.is_zipfile(base):
            tables = self._read_zip(base)
        elif base.is_dir():
            tables = self._read_dir(base)
        else:
            raise FileNotFoundError(f"GTFS feed not found: {base}")

        missing = [name for name in REQUIRED_FILES if name not in tables]
        if missing:
            raise FileNotFoundError(f"GTFS feed {base} is missing: {', '.join(missing)}")

        raw = RawFeed(
            stops=tables["stops.txt"],
            routes=tables["routes.txt"],
            trips=tables["trips.txt"],
            stop_times=tables["stop_times.txt"],
            shapes=tables.get("shapes.txt", []),
        )
        logger.info("Loading GTFS feed from %s", base)
        return normalize_feed(raw, region=self.region)

    def _read_dir(self, base: Path) -> dict[str, list[RawRow]]:
        tables: dict[str, list[RawRow]] = {}
        for name in (*REQUIRED_FILES, *OPTIONAL_FILES):
            path = base / name
            if not path.exists():
                continue
            with path.open("r", encoding="utf-8-sig", newline="") as fp:
                tables[name] = list(csv.DictReader(fp))
        return tables

    def _read_zip(self, archive: Path) -> dict[str, list[RawRow]]:
        tables: dict[str, list[RawRow]] = {}
        with zipfile.ZipFile(archive) as zf:
            # Some publishers nest the files in a folder inside the archive.
            members = {Path(n).name: n for n in zf.namelist() if not n.endswith("/")}
            for name in (*REQUIRED_FILES, *OPTIONAL_FILES):
                member = members.get(name)
                if member is None:
                    continue
                with zf.open(member) as raw_fp:
                    text = io.TextIOWrapper(raw_fp, encoding="utf-8-sig", newline="")
                    tables[name] = list(csv.DictReader(text))
        return tables
