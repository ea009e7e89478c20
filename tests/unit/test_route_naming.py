from __future__ import annotations

import pytest

from journey_planner.domain.algorithms.route_naming import (
    RouteNameInput,
    default_route_color,
    normalize_color,
    synthesize_short_names,
    terminus_abbreviation,
)
from journey_planner.domain.algorithms.station_names import normalize_station_name


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("f00", "#FF0000"),
        ("#00a651", "#00A651"),
        (" D61C1F ", "#D61C1F"),
        ("red", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_color(raw: str | None, expected: str | None) -> None:
    assert normalize_color(raw) == expected


@pytest.mark.unit
def test_default_color_depends_on_mode() -> None:
    assert default_route_color(1) != default_route_color(3)
    assert default_route_color(715) == default_route_color(3)


@pytest.mark.unit
def test_terminus_abbreviation() -> None:
    assert terminus_abbreviation("Konak - Karşıyaka") == "KON-KAR"
    assert terminus_abbreviation("Bostanlı → Üçkuyular") == "BOS-UCK"
    assert terminus_abbreviation("Circular") is None


@pytest.mark.unit
def test_synthesized_short_names_per_mode() -> None:
    routes = [
        RouteNameInput("F1", 4, "", "Konak - Karşıyaka"),
        RouteNameInput("F2", 4, "", ""),
        RouteNameInput("IZBAN_B", 2, "", "Aliağa - Cumaovası"),
        RouteNameInput("IZBAN_A", 2, "", "Menemen - Torbalı"),
        RouteNameInput("metro_2", 1, "", "Evka 3 - Fahrettin Altay"),
        RouteNameInput("TRAM", 0, "", "Alaybey - Ata Sanayi"),
        RouteNameInput("b7", 3, "", "Gaziemir - Konak"),
        RouteNameInput("b8", 3, "202", "Havalimanı"),
    ]

    names = synthesize_short_names(routes)

    assert names == {
        "F1": "KON-KAR",
        "F2": "F2",
        "IZBAN_A": "S1",
        "IZBAN_B": "S2",
        "metro_2": "M2",
        "TRAM": "T1",
        "b7": "b7",
    }


@pytest.mark.unit
def test_synthesized_names_do_not_depend_on_row_order() -> None:
    routes = [
        RouteNameInput("R2", 2, "", ""),
        RouteNameInput("R1", 2, "", ""),
    ]
    assert synthesize_short_names(routes) == synthesize_short_names(list(reversed(routes)))


@pytest.mark.unit
@pytest.mark.parametrize(
    ("name", "key"),
    [
        ("M1_Nation", "nation"),
        ("RER_A_Châtelet", "chatelet"),
        ("T3_Porte de Vincennes", "porte de vincennes"),
        ("bus_42_Bastille", "bastille"),
        ("  Gare de Lyon ", "gare de lyon"),
        ("Montréal", "montreal"),
    ],
)
def test_normalize_station_name(name: str, key: str) -> None:
    assert normalize_station_name(name) == key
