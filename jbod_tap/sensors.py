"""Per-sensor-class catalog passes over ``sg_ses`` output.

Each pass works in two phases. A filtered ``sg_ses -j -ff`` listing tells
which element indices exist, then a single ``sg_ses --index=`` detail query
per new (index, enclosure serial) pair returns the reading itself.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging
from typing import Any, Generic, TypeVar

from jbod_tap.exceptions import ParseError
from jbod_tap.logging_utils import TRACE_LEVEL
from jbod_tap.models import Enclosure, FanReading, TemperatureReading, VoltageReading
from jbod_tap.parsing import (
    SensorClass,
    SensorMatch,
    extract_after,
    extract_first_integer,
    extract_float,
    match_sensor_line,
)
from jbod_tap.runner import CommandRunner

ReadingT = TypeVar("ReadingT", FanReading, TemperatureReading, VoltageReading)

STATUS_MARKER = "status:"
TEMPERATURE_MARKER = "Temperature="
VOLTAGE_MARKER = "Voltage:"


def parse_fan_detail(output: str, default_speed: int = 0) -> tuple[int, str]:
    """Return ``(speed, comment)`` from a cooling element detail query.

    The relevant line looks like
    ``Off=0, Actual speed=7400 rpm, Fan at third lowest speed``.
    The first such line carrying a number wins.
    """
    fallback: tuple[int, str] | None = None
    for line in output.splitlines():
        if "speed" not in line:
            continue
        fields = [field.strip() for field in line.split(",")]
        position = next(
            (i for i, field in enumerate(fields) if "speed" in field), None
        )
        if position is None:
            continue
        comment = fields[position + 1] if position + 1 < len(fields) else ""
        speed = extract_first_integer(fields[position])
        if speed is not None:
            return speed, comment
        if fallback is None:
            fallback = (default_speed, comment)
    return fallback or (default_speed, "")


def parse_status(output: str, default: str = "") -> str:
    status = default
    for line in output.splitlines():
        if STATUS_MARKER in line:
            status = extract_after(line, STATUS_MARKER)
    return status


def parse_temperature_detail(output: str, default: int = 0) -> tuple[int, str]:
    temperature = default
    for line in output.splitlines():
        if TEMPERATURE_MARKER in line:
            _, _, value = line.partition(TEMPERATURE_MARKER)
            temperature = extract_first_integer(value, default)
    return temperature, parse_status(output)


def parse_voltage_detail(output: str, default: float = 0.0) -> tuple[float, str]:
    """Return ``(voltage, status)`` from a voltage sensor detail query.

    Raises:
        ParseError: if a ``Voltage:`` line carries no readable number.
    """
    voltage = default
    for line in output.splitlines():
        if VOLTAGE_MARKER in line:
            tokens = line.split()
            if len(tokens) < 2:
                raise ParseError(f"No voltage value in line: {line.strip()!r}")
            voltage = extract_float(tokens[1])
    return voltage, parse_status(output)


class SensorCatalogBuilder(Generic[ReadingT]):
    sensor_class: SensorClass

    def __init__(self, runner: CommandRunner, sg_ses_path: str = "sg_ses") -> None:
        self.runner = runner
        self.sg_ses_path = sg_ses_path
        self.logger = logging.getLogger(self.__class__.__name__)

    def build(self, enclosures: Iterable[Enclosure]) -> list[ReadingT]:
        readings: list[ReadingT] = []
        seen: set[tuple[str, str]] = set()
        for enclosure in enclosures:
            # drain the listing before any detail query so only one
            # process touches the enclosure at a time
            for match in list(self._listing(enclosure)):
                key = (match.index, enclosure.serial)
                if key in seen:
                    self.logger.log(TRACE_LEVEL, "Skipping duplicate element %s on %s", *key)
                    continue
                seen.add(key)
                detail = self.runner.run(
                    [self.sg_ses_path, f"--index={match.index}", enclosure.device_path]
                )
                try:
                    readings.append(self._reading(enclosure, match, detail.stdout))
                except ParseError as exc:
                    self.logger.warning(
                        "Skipping %s element %s on %s: %s",
                        self.sensor_class.value,
                        match.index,
                        enclosure.device_path,
                        exc,
                    )
        self.logger.debug(
            "Collected %s %s reading(s).", len(readings), self.sensor_class.value
        )
        return readings

    def _listing(self, enclosure: Enclosure) -> Iterator[SensorMatch]:
        lines = self.runner.stream(
            [self.sg_ses_path, "-j", "-ff", enclosure.device_path]
        )
        for line in lines:
            if self.sensor_class.stream_filter not in line:
                continue
            match = match_sensor_line(self.sensor_class, line)
            if match is not None:
                yield match

    def _reading(self, enclosure: Enclosure, match: SensorMatch, detail: str) -> ReadingT:
        raise NotImplementedError

    @staticmethod
    def _identity(enclosure: Enclosure, match: SensorMatch) -> dict[str, Any]:
        return {
            "slot": enclosure.slot,
            "serial": enclosure.serial,
            "description": match.description,
            "index": match.index,
        }


class FanCatalog(SensorCatalogBuilder[FanReading]):
    sensor_class = SensorClass.FAN

    def _reading(self, enclosure: Enclosure, match: SensorMatch, detail: str) -> FanReading:
        speed, comment = parse_fan_detail(detail)
        return FanReading(**self._identity(enclosure, match), speed=speed, comment=comment)


class TemperatureCatalog(SensorCatalogBuilder[TemperatureReading]):
    sensor_class = SensorClass.TEMPERATURE

    def _reading(
        self, enclosure: Enclosure, match: SensorMatch, detail: str
    ) -> TemperatureReading:
        temperature, status = parse_temperature_detail(detail)
        return TemperatureReading(
            **self._identity(enclosure, match), temperature=temperature, status=status
        )


class VoltageCatalog(SensorCatalogBuilder[VoltageReading]):
    sensor_class = SensorClass.VOLTAGE

    def _reading(
        self, enclosure: Enclosure, match: SensorMatch, detail: str
    ) -> VoltageReading:
        voltage, status = parse_voltage_detail(detail)
        return VoltageReading(
            **self._identity(enclosure, match), voltage=voltage, status=status
        )


CATALOGS: dict[SensorClass, type[SensorCatalogBuilder[Any]]] = {
    SensorClass.FAN: FanCatalog,
    SensorClass.TEMPERATURE: TemperatureCatalog,
    SensorClass.VOLTAGE: VoltageCatalog,
}
