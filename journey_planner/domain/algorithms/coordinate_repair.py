"""Best-effort recovery of stop coordinates from malformed feeds.

Real-world feeds encode coordinates in several broken ways. Each decoder
below handles one hypothesis and yields candidate (lat, lon) pairs; the first
candidate that is plausible for the deployment region wins. None of this is
guaranteed to be correct, and stops whose coordinates are still invalid after
repair are dropped by the normalizer.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Sequence

from journey_planner.domain.models.geo import RegionBounds

_DIGITS = re.compile(r"^\d+$")
_SIGNED_DIGITS = re.compile(r"^[+-]?\d+$")

SCALE_DIVISORS = (1e5, 1e6, 1e7)


@dataclass(frozen=True, slots=True)
class RawCoordinates:
    """Coordinate cells of one stop row.

    `trailing` holds the values of the columns after the longitude column,
    followed by any surplus cells the CSV reader could not assign to a header
    (where a comma-decimal value split a row).
    """

    lat: str
    lon: str
    trailing: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RepairedCoordinates:
    lat: float
    lon: float
    strategy: str

    @property
    def repaired(self) -> bool:
        return self.strategy not in ("plain", "unparsed")


Candidate = tuple[float, float]


@dataclass(frozen=True, slots=True)
class CoordinateDecoder:
    name: str
    decode: Callable[[RawCoordinates], Iterable[Candidate]]


def parse_coordinate(raw: str | None) -> float | None:
    """Parse one coordinate cell; a lone comma is read as a decimal point."""

    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    if "," in text and "." not in text and text.count(",") == 1:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return None


def is_valid_wgs84(lat: float, lon: float) -> bool:
    return (
        not math.isnan(lat)
        and not math.isnan(lon)
        and -90.0 <= lat <= 90.0
        and -180.0 <= lon <= 180.0
    )


def _decode_plain(raw: RawCoordinates) -> Iterator[Candidate]:
    lat, lon = parse_coordinate(raw.lat), parse_coordinate(raw.lon)
    if lat is not None and lon is not None:
        yield lat, lon


def _decode_swapped(raw: RawCoordinates) -> Iterator[Candidate]:
    lat, lon = parse_coordinate(raw.lat), parse_coordinate(raw.lon)
    if lat is not None and lon is not None:
        yield lon, lat


def _join(integer: str, fraction: str) -> float:
    return float(f"{integer.strip()}.{fraction.strip()}")


def _decode_comma_split(raw: RawCoordinates) -> Iterator[Candidate]:
    # "38,4231","27,1234" written without quoting: lat=38, lon=4231, then 27, 1234.
    if len(raw.trailing) < 2:
        return
    lat_int, lat_frac = raw.lat.strip(), raw.lon.strip()
    lon_int, lon_frac = raw.trailing[0].strip(), raw.trailing[1].strip()
    if not (_SIGNED_DIGITS.match(lat_int) and _DIGITS.match(lat_frac)):
        return
    if not (_SIGNED_DIGITS.match(lon_int) and _DIGITS.match(lon_frac)):
        return
    yield _join(lat_int, lat_frac), _join(lon_int, lon_frac)


def _decode_decimal_column(raw: RawCoordinates) -> Iterator[Candidate]:
    # Integer degrees in lat/lon, fractional digits in another column pair.
    lat_int, lon_int = raw.lat.strip(), raw.lon.strip()
    if not (_SIGNED_DIGITS.match(lat_int) and _SIGNED_DIGITS.match(lon_int)):
        return
    cells = [c.strip() for c in raw.trailing]
    for i in range(len(cells) - 1):
        if _DIGITS.match(cells[i]) and _DIGITS.match(cells[i + 1]):
            yield _join(lat_int, cells[i]), _join(lon_int, cells[i + 1])


def _decode_scaled_integer(raw: RawCoordinates) -> Iterator[Candidate]:
    lat_int, lon_int = raw.lat.strip(), raw.lon.strip()
    if not (_SIGNED_DIGITS.match(lat_int) and _SIGNED_DIGITS.match(lon_int)):
        return
    for divisor in SCALE_DIVISORS:
        yield int(lat_int) / divisor, int(lon_int) / divisor


DEFAULT_DECODERS: tuple[CoordinateDecoder, ...] = (
    CoordinateDecoder("plain", _decode_plain),
    CoordinateDecoder("swapped", _decode_swapped),
    CoordinateDecoder("comma_split", _decode_comma_split),
    CoordinateDecoder("decimal_column", _decode_decimal_column),
    CoordinateDecoder("scaled_integer", _decode_scaled_integer),
)


def repair_coordinates(
    raw: RawCoordinates,
    region: RegionBounds | None = None,
    decoders: Sequence[CoordinateDecoder] = DEFAULT_DECODERS,
) -> RepairedCoordinates:
    """Try each decoder in order; the first plausible candidate wins.

    Plausible means inside `region` when given, otherwise a valid WGS84
    position. When nothing is plausible: keep the plain values if they are
    valid at all, swap them if they are obviously reversed, else pass them
    through unchanged so validation can discard the row.
    """

    def plausible(lat: float, lon: float) -> bool:
        if not is_valid_wgs84(lat, lon):
            return False
        return region is None or region.contains(lat, lon)

    for decoder in decoders:
        for lat, lon in decoder.decode(raw):
            if plausible(lat, lon):
                return RepairedCoordinates(lat=lat, lon=lon, strategy=decoder.name)

    lat, lon = parse_coordinate(raw.lat), parse_coordinate(raw.lon)
    if lat is None or lon is None:
        return RepairedCoordinates(lat=math.nan, lon=math.nan, strategy="unparsed")
    if is_valid_wgs84(lat, lon):
        return RepairedCoordinates(lat=lat, lon=lon, strategy="plain")
    if abs(lat) > 90.0 and abs(lon) <= 90.0:
        return RepairedCoordinates(lat=lon, lon=lat, strategy="swapped")
    return RepairedCoordinates(lat=lat, lon=lon, strategy="plain")
