from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
import logging
import socket
from typing import Any

import psutil

from jbod_tap.config import CollectorConfig
from jbod_tap.discovery import EnclosureDiscovery
from jbod_tap.models import DiskSlot, Enclosure, FanReading, TemperatureReading, VoltageReading
from jbod_tap.parsing import SensorClass
from jbod_tap.runner import CommandRunner
from jbod_tap.sensors import FanCatalog, TemperatureCatalog, VoltageCatalog

SCHEMA_NAME = "jbod-inventory"
SCHEMA_VERSION = 1

# payload key per sensor class
PAYLOAD_KEYS = {
    SensorClass.FAN: "fans",
    SensorClass.TEMPERATURE: "temperatures",
    SensorClass.VOLTAGE: "voltages",
}


class JbodInventory:
    """Entry point for the presentation and export layers.

    Every call queries the enclosures afresh; nothing is cached between
    calls. The ``collect_*`` methods discover enclosures themselves unless
    a list from an earlier ``discover_enclosures()`` is passed in.
    """

    def __init__(
        self,
        config: CollectorConfig | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.config = config or CollectorConfig()
        self.runner = runner or CommandRunner()
        self.logger = logging.getLogger(self.__class__.__name__)
        self.discovery = EnclosureDiscovery(
            self.runner, self.config.lsscsi_path, self.config.sg_inq_path
        )
        self.fans = FanCatalog(self.runner, self.config.sg_ses_path)
        self.temperatures = TemperatureCatalog(self.runner, self.config.sg_ses_path)
        self.voltages = VoltageCatalog(self.runner, self.config.sg_ses_path)

    def discover_enclosures(self) -> list[Enclosure]:
        return self.discovery.discover()

    def collect_fan_readings(
        self, enclosures: Sequence[Enclosure] | None = None
    ) -> list[FanReading]:
        return self.fans.build(self._enclosures(enclosures))

    def collect_temperature_readings(
        self, enclosures: Sequence[Enclosure] | None = None
    ) -> list[TemperatureReading]:
        return self.temperatures.build(self._enclosures(enclosures))

    def collect_voltage_readings(
        self, enclosures: Sequence[Enclosure] | None = None
    ) -> list[VoltageReading]:
        return self.voltages.build(self._enclosures(enclosures))

    def collect(self) -> dict[str, Any]:
        """Build the exported payload with a single discovery pass."""
        self.logger.debug("Collecting enclosure inventory payload.")
        enclosures = self.discover_enclosures()
        payload: dict[str, Any] = {
            "schema": {"name": SCHEMA_NAME, "version": SCHEMA_VERSION},
            "ts": datetime.now(timezone.utc).isoformat(),
            "host": self._collect_host(),
            "enclosures": [enclosure.as_dict() for enclosure in enclosures],
        }
        collectors = {
            SensorClass.FAN: self.collect_fan_readings,
            SensorClass.TEMPERATURE: self.collect_temperature_readings,
            SensorClass.VOLTAGE: self.collect_voltage_readings,
        }
        for sensor_class in self.config.sensor_classes:
            readings = collectors[sensor_class](enclosures)
            payload[PAYLOAD_KEYS[sensor_class]] = [
                reading.as_dict() for reading in readings
            ]
        self.logger.debug(
            "Completed inventory payload for %s enclosure(s).", len(enclosures)
        )
        return payload

    def _enclosures(self, enclosures: Sequence[Enclosure] | None) -> Sequence[Enclosure]:
        if enclosures is None:
            return self.discover_enclosures()
        return enclosures

    def _collect_host(self) -> dict[str, Any]:
        boot = datetime.fromtimestamp(psutil.boot_time(), tz=timezone.utc)
        uptime_s = int(datetime.now(timezone.utc).timestamp() - boot.timestamp())
        return {
            "name": socket.gethostname(),
            "boot_time": boot.isoformat(),
            "uptime_s": uptime_s,
        }


def disks_by_enclosure(
    enclosures: Iterable[Enclosure], disks: Iterable[DiskSlot]
) -> list[tuple[Enclosure, list[DiskSlot]]]:
    """Pair each enclosure with its disks, sorted by disk slot.

    Disks whose enclosure slot matches no enclosure are left out.
    """
    ordered = sorted(disks, key=lambda disk: disk.slot)
    return [
        (enclosure, [disk for disk in ordered if disk.enclosure == enclosure.slot])
        for enclosure in enclosures
    ]
