"""JBOD enclosure inventory and sensor exporter."""

from jbod_tap.config import AppConfig, load_config
from jbod_tap.exceptions import JbodTapError, ParseError, ToolUnavailableError
from jbod_tap.inventory import JbodInventory
from jbod_tap.models import (
    DiskSlot,
    Enclosure,
    FanReading,
    TemperatureReading,
    VoltageReading,
)
from jbod_tap.mqtt_client import MqttPublisher
from jbod_tap.schema import validate_payload

__all__ = [
    "AppConfig",
    "DiskSlot",
    "Enclosure",
    "FanReading",
    "JbodInventory",
    "JbodTapError",
    "MqttPublisher",
    "ParseError",
    "TemperatureReading",
    "ToolUnavailableError",
    "VoltageReading",
    "load_config",
    "validate_payload",
]
