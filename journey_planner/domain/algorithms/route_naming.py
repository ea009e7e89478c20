from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from journey_planner.domain.models.transit_mode import TransitMode

from .station_names import strip_accents

DEFAULT_MODE_COLORS: dict[TransitMode, str] = {
    TransitMode.TRAM: "#00A651",
    TransitMode.METRO: "#D61C1F",
    TransitMode.RAIL: "#005BBB",
    TransitMode.BUS: "#0066CC",
    TransitMode.FERRY: "#0099CC",
    TransitMode.OTHER: "#666666",
}
DEFAULT_TEXT_COLOR = "#FFFFFF"

_HEX3 = re.compile(r"^[0-9A-Fa-f]{3}$")
_HEX6 = re.compile(r"^[0-9A-Fa-f]{6}$")
_NUMBER = re.compile(r"\d+")
_TERMINUS_SEPARATORS = re.compile(r"\s*(?:-|–|—|→|>|/)\s*")


def normalize_color(raw: str | None) -> str | None:
    """Return '#RRGGBB' (upper-case) or None when the value is not a hex color."""

    if raw is None:
        return None
    value = str(raw).strip().lstrip("#")
    if _HEX3.match(value):
        value = "".join(c * 2 for c in value)
    if not _HEX6.match(value):
        return None
    return "#" + value.upper()


def default_route_color(route_type: int) -> str:
    return DEFAULT_MODE_COLORS[TransitMode.from_route_type(route_type)]


@dataclass(frozen=True, slots=True)
class RouteNameInput:
    route_id: str
    route_type: int
    short_name: str
    long_name: str


def terminus_abbreviation(long_name: str) -> str | None:
    """'Konak - Karşıyaka' -> 'KON-KAR'."""

    parts = [p for p in _TERMINUS_SEPARATORS.split(long_name or "") if p.strip()]
    if len(parts) < 2:
        return None
    first, last = parts[0], parts[-1]

    def abbr(part: str) -> str:
        letters = "".join(c for c in strip_accents(part) if c.isalnum())
        return letters[:3].upper()

    a, b = abbr(first), abbr(last)
    if not a or not b:
        return None
    return f"{a}-{b}"


def synthesize_short_names(routes: Iterable[RouteNameInput]) -> dict[str, str]:
    """Derive a rider-facing code for every route whose feed omits one.

    Ferries use terminus abbreviations from the long name, rail lines are
    numbered S1, S2, ... in route_id order, metro and tram lines use M/T plus
    the number in their route_id, everything else keeps its route_id.
    The result only depends on the feed contents.
    """

    missing = sorted(
        (r for r in routes if not (r.short_name or "").strip()),
        key=lambda r: r.route_id,
    )

    names: dict[str, str] = {}
    rail_seq = 0
    letter_seq: dict[str, int] = {"M": 0, "T": 0}

    for r in missing:
        mode = TransitMode.from_route_type(r.route_type)
        if mode is TransitMode.FERRY:
            names[r.route_id] = terminus_abbreviation(r.long_name) or r.route_id
        elif mode is TransitMode.RAIL:
            rail_seq += 1
            names[r.route_id] = f"S{rail_seq}"
        elif mode in (TransitMode.METRO, TransitMode.TRAM):
            letter = "M" if mode is TransitMode.METRO else "T"
            m = _NUMBER.search(r.route_id)
            if m is not None:
                names[r.route_id] = f"{letter}{int(m.group(0))}"
            else:
                letter_seq[letter] += 1
                names[r.route_id] = f"{letter}{letter_seq[letter]}"
        else:
            names[r.route_id] = r.route_id

    return names
