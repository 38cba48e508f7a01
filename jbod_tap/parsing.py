"""Text extraction helpers for sg3_utils output.

The tools emit human-oriented text whose layout drifts between firmware
revisions, so every helper here works on loose substrings rather than on
fixed columns.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re

from jbod_tap.exceptions import ParseError

_DIGITS = re.compile(r"[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def extract_first_integer(text: str, default: int | None = None) -> int | None:
    """Return the first run of decimal digits in ``text`` as an integer.

    Signs and separators are ignored: ``"-12"`` yields ``12`` and
    ``"7,200"`` yields ``7``. ``default`` is returned when no digit exists.
    """
    match = _DIGITS.search(text)
    if match is None:
        return default
    return int(match.group(0))


def extract_float(token: str) -> float:
    """Parse a single token strictly as a decimal number.

    Raises:
        ParseError: if the token is not a plain decimal literal.
    """
    candidate = token.strip()
    if not _DECIMAL.fullmatch(candidate):
        raise ParseError(f"Not a decimal number: {token!r}")
    return float(candidate)


def extract_after(text: str, marker: str, default: str = "") -> str:
    """Return the trimmed text following the first ``marker``."""
    _, found, remainder = text.partition(marker)
    if not found:
        return default
    return remainder.strip()


class SensorClass(str, Enum):
    FAN = "fan"
    TEMPERATURE = "temperature"
    VOLTAGE = "voltage"

    @property
    def keyword(self) -> str:
        """Element type name as printed by ``sg_ses``."""
        return _KEYWORDS[self]

    @property
    def stream_filter(self) -> str:
        """Substring a listing line must contain to be considered at all."""
        return _STREAM_FILTERS[self]

    @property
    def pattern(self) -> re.Pattern[str]:
        return _PATTERNS[self]


_KEYWORDS = {
    SensorClass.FAN: "Cooling",
    SensorClass.TEMPERATURE: "Temperature",
    SensorClass.VOLTAGE: "Voltage",
}

_STREAM_FILTERS = {
    SensorClass.FAN: "Cooling",
    SensorClass.TEMPERATURE: "Temperature sensor",
    SensorClass.VOLTAGE: "Voltage sensor",
}

# description, bracketed "<int>,<int>" element index, then the element type
_PATTERNS = {
    sensor_class: re.compile(
        rf"(?P<desc>.*?)\[(?P<id>-?\d+,-?\d+)\].*{keyword}"
    )
    for sensor_class, keyword in _KEYWORDS.items()
}


@dataclass(frozen=True)
class SensorMatch:
    description: str
    index: str


def match_sensor_line(sensor_class: SensorClass, line: str) -> SensorMatch | None:
    """Match one ``sg_ses -j`` line against the class pattern.

    Returns None for headers, footers and lines of other element types.
    """
    match = sensor_class.pattern.search(line)
    if match is None:
        return None
    return SensorMatch(
        description=match.group("desc").strip(),
        index=match.group("id"),
    )
