from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

NOT_INSTALLED = "Not installed"


class _Record:
    def as_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


@dataclass(frozen=True)
class Enclosure(_Record):
    slot: str
    device_path: str
    vendor: str
    model: str
    revision: str
    serial: str


@dataclass(frozen=True)
class FanReading(_Record):
    slot: str
    serial: str
    description: str
    index: str
    speed: int
    comment: str


@dataclass(frozen=True)
class TemperatureReading(_Record):
    slot: str
    serial: str
    description: str
    index: str
    temperature: int
    status: str

    @property
    def installed(self) -> bool:
        return self.status != NOT_INSTALLED


@dataclass(frozen=True)
class VoltageReading(_Record):
    slot: str
    serial: str
    description: str
    index: str
    voltage: float
    status: str

    @property
    def installed(self) -> bool:
        return self.status != NOT_INSTALLED


@dataclass(frozen=True)
class DiskSlot(_Record):
    """One disk as reported by the external disk-to-slot mapper.

    ``enclosure`` holds the slot label of the enclosure the disk sits in and
    joins against :attr:`Enclosure.slot`.
    """

    enclosure: str
    slot: str
    device_path: str
    device_map: str
    vendor: str
    model: str
    serial: str
    temperature: str
    firmware_revision: str


SensorReading = TypeVar("SensorReading", TemperatureReading, VoltageReading)


def installed_only(readings: Iterable[SensorReading]) -> list[SensorReading]:
    """Drop sensors the enclosure reports as not installed."""
    return [reading for reading in readings if reading.status != NOT_INSTALLED]
