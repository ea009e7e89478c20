from __future__ import annotations

import re
import unicodedata

# Line prefixes some feeds put in front of platform names ("M1_Nation", "RER_A_Auber").
_LINE_PREFIX = re.compile(r"^(M\d+_|RER_[A-Z]_|T\d+_|BUS_\d+_)", re.IGNORECASE)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_station_name(name: str) -> str:
    """Key used to treat platforms of the same station as one place."""

    return strip_accents(_LINE_PREFIX.sub("", name or "")).lower().strip()
