"""Parse free-form map input into a canonical ``(longitude, latitude)`` pair.

Submissions carry coordinates in whatever shape the submitter (or an admin
editing the approval form) happened to use. Each accepted shape is one
:class:`CoordinateShape` with one strategy, tried in the order below:

1. ``PAIR``          ``[101.6, 3.1]``
2. ``GEOJSON``       ``{"type": "Point", "coordinates": [101.6, 3.1]}``
3. ``NAMED_FIELDS``  ``{"longitude": 101.6, "latitude": 3.1}``
4. ``LABELED_TEXT``  ``"lat: 3.1, lng: 101.6"``
5. ``BARE_TEXT``     ``"[101.6, 3.1]"``, ``"(101.6 3.1)"``, ``"101.6, 3.1"``

The first strategy whose shape matches decides the outcome. Unlabeled pairs
are read longitude first and swapped only when that reading is out of range
while the swapped one is valid. Labeled readings are never swapped.

Everything here is pure.
"""

import math
import re
from enum import Enum
from typing import Any, Callable, Mapping, NamedTuple, Optional, Tuple

from onboarding.core.errors import ValidationError

Coordinates = Tuple[float, float]

COORDINATES_MESSAGE = "coordinates must be provided as [longitude, latitude] before promotion"

LONGITUDE_KEYS = ("longitude", "lng", "lon", "long")
LATITUDE_KEYS = ("latitude", "lat")

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
_NUMBER_RE = re.compile(_NUMBER)
_LATITUDE_RE = re.compile(rf"\b(?:latitude|lat)\b[\"']?\s*[:=]?\s*({_NUMBER})", re.IGNORECASE)
_LONGITUDE_RE = re.compile(rf"\b(?:longitude|long|lng|lon)\b[\"']?\s*[:=]?\s*({_NUMBER})", re.IGNORECASE)
_BRACKETED_RE = re.compile(rf"[\[(]\s*({_NUMBER})\s*[,;\s]\s*({_NUMBER})\s*[\])]")
_SEPARATOR_RE = re.compile(r"\s*[,;]\s*|\s+")


class CoordinateShape(str, Enum):
    PAIR = "pair"
    GEOJSON = "geojson"
    NAMED_FIELDS = "named_fields"
    LABELED_TEXT = "labeled_text"
    BARE_TEXT = "bare_text"


class CoordinateParseError(ValidationError):
    """Raised when no valid ``(longitude, latitude)`` can be read from the input."""

    def __init__(self, reason: str) -> None:
        super().__init__("map", COORDINATES_MESSAGE)
        self.reason = reason


class _Reading(NamedTuple):
    first: float
    second: float
    # True when ``first`` is known to be the longitude.
    labeled: bool


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _two_numbers(values: Any) -> Optional[Tuple[float, float]]:
    if not isinstance(values, (list, tuple)) or len(values) != 2:
        return None
    first, second = _as_number(values[0]), _as_number(values[1])
    if first is None or second is None:
        return None
    return first, second


def _first_number(mapping: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[float]:
    for key in keys:
        if key in mapping:
            return _as_number(mapping[key])
    return None


def _read_pair(raw: Any) -> Optional[_Reading]:
    numbers = _two_numbers(raw)
    return _Reading(*numbers, labeled=False) if numbers else None


def _read_geojson(raw: Any) -> Optional[_Reading]:
    if not isinstance(raw, Mapping) or str(raw.get("type", "")).lower() != "point":
        return None
    numbers = _two_numbers(raw.get("coordinates"))
    return _Reading(*numbers, labeled=False) if numbers else None


def _read_named_fields(raw: Any) -> Optional[_Reading]:
    if not isinstance(raw, Mapping):
        return None
    longitude = _first_number(raw, LONGITUDE_KEYS)
    latitude = _first_number(raw, LATITUDE_KEYS)
    if longitude is None or latitude is None:
        return None
    return _Reading(longitude, latitude, labeled=True)


def _read_labeled_text(raw: Any) -> Optional[_Reading]:
    if not isinstance(raw, str):
        return None
    latitude = _LATITUDE_RE.search(raw)
    longitude = _LONGITUDE_RE.search(raw)
    if not latitude or not longitude:
        return None
    return _Reading(float(longitude.group(1)), float(latitude.group(1)), labeled=True)


def _read_bare_text(raw: Any) -> Optional[_Reading]:
    if not isinstance(raw, str):
        return None
    bracketed = _BRACKETED_RE.search(raw)
    if bracketed:
        values = bracketed.groups()
    else:
        matches = list(_NUMBER_RE.finditer(raw))
        if len(matches) != 2:
            return None
        first, second = matches
        # "1.2.3" or "101.6-3.1" would otherwise split into two numbers.
        if not _SEPARATOR_RE.fullmatch(raw, first.end(), second.start()):
            return None
        values = (first.group(), second.group())
    numbers = _two_numbers([float(value) for value in values])
    return _Reading(*numbers, labeled=False) if numbers else None


_STRATEGIES: Tuple[Tuple[CoordinateShape, Callable[[Any], Optional[_Reading]]], ...] = (
    (CoordinateShape.PAIR, _read_pair),
    (CoordinateShape.GEOJSON, _read_geojson),
    (CoordinateShape.NAMED_FIELDS, _read_named_fields),
    (CoordinateShape.LABELED_TEXT, _read_labeled_text),
    (CoordinateShape.BARE_TEXT, _read_bare_text),
)


def is_valid(longitude: float, latitude: float) -> bool:
    return -180 <= longitude <= 180 and -90 <= latitude <= 90


def _orient(reading: _Reading) -> Coordinates:
    if is_valid(reading.first, reading.second):
        return reading.first, reading.second
    if not reading.labeled and is_valid(reading.second, reading.first):
        return reading.second, reading.first
    raise CoordinateParseError(f"({reading.first}, {reading.second}) is out of range in either order")


def read_coordinates(raw: Any) -> Tuple[CoordinateShape, Coordinates]:
    """Return the matched shape together with the canonical pair."""
    for shape, strategy in _STRATEGIES:
        reading = strategy(raw)
        if reading is not None:
            return shape, _orient(reading)
    raise CoordinateParseError("no coordinate pair found" if raw not in (None, "") else "missing")


def parse_coordinates(raw: Any) -> Coordinates:
    """Parse ``raw`` into ``(longitude, latitude)`` or raise :class:`CoordinateParseError`."""
    return read_coordinates(raw)[1]
