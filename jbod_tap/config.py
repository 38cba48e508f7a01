from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import configparser

from jbod_tap.parsing import SensorClass


@dataclass(frozen=True)
class MqttConfig:
    host: str = "localhost"
    port: int = 1883
    base_topic: str = "telemetry/jbod"
    discovery_topic: str = "homeassistant"
    client_id: str = "jbod-tap"
    username: str | None = None
    password: str | None = None
    qos: int = 0
    retain: bool = False
    tls_enabled: bool = False
    ca_cert: str | None = None
    keepalive: int = 60


@dataclass(frozen=True)
class PublishConfig:
    interval_s: int = 60


@dataclass(frozen=True)
class CollectorConfig:
    lsscsi_path: str = "/usr/bin/lsscsi"
    sg_inq_path: str = "/usr/bin/sg_inq"
    sg_ses_path: str = "/usr/bin/sg_ses"
    sensor_classes: tuple[SensorClass, ...] = field(
        default_factory=lambda: tuple(SensorClass)
    )


@dataclass(frozen=True)
class AppConfig:
    mqtt: MqttConfig
    publish: PublishConfig
    collector: CollectorConfig


def _get_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _get_list(value: str | None) -> list[str]:
    if value is None:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _get_sensor_classes(value: str | None) -> tuple[SensorClass, ...]:
    names = _get_list(value)
    if not names:
        return tuple(SensorClass)
    try:
        return tuple(SensorClass(name.lower()) for name in names)
    except ValueError as exc:
        choices = ", ".join(item.value for item in SensorClass)
        raise ValueError(f"Unknown sensor class in {value!r}; expected {choices}") from exc


def load_config(path: str | Path) -> AppConfig:
    parser = configparser.ConfigParser()
    read_files = parser.read(path)
    if not read_files:
        raise FileNotFoundError(f"Config file not found: {path}")

    defaults = MqttConfig()
    mqtt = MqttConfig(
        host=parser.get("mqtt", "host", fallback=defaults.host),
        port=parser.getint("mqtt", "port", fallback=defaults.port),
        base_topic=parser.get("mqtt", "base_topic", fallback=defaults.base_topic),
        discovery_topic=parser.get(
            "mqtt", "discovery_topic", fallback=defaults.discovery_topic
        ),
        client_id=parser.get("mqtt", "client_id", fallback=defaults.client_id),
        username=_get_optional(parser.get("mqtt", "username", fallback=None)),
        password=_get_optional(parser.get("mqtt", "password", fallback=None)),
        qos=parser.getint("mqtt", "qos", fallback=defaults.qos),
        retain=parser.getboolean("mqtt", "retain", fallback=defaults.retain),
        tls_enabled=parser.getboolean("mqtt", "tls", fallback=defaults.tls_enabled),
        ca_cert=_get_optional(parser.get("mqtt", "ca_cert", fallback=None)),
        keepalive=parser.getint("mqtt", "keepalive", fallback=defaults.keepalive),
    )

    publish = PublishConfig(
        interval_s=parser.getint("publish", "interval_s", fallback=PublishConfig.interval_s),
    )

    collector = CollectorConfig(
        lsscsi_path=parser.get(
            "collector", "lsscsi_path", fallback=CollectorConfig.lsscsi_path
        ),
        sg_inq_path=parser.get(
            "collector", "sg_inq_path", fallback=CollectorConfig.sg_inq_path
        ),
        sg_ses_path=parser.get(
            "collector", "sg_ses_path", fallback=CollectorConfig.sg_ses_path
        ),
        sensor_classes=_get_sensor_classes(
            parser.get("collector", "sensor_classes", fallback=None)
        ),
    )

    return AppConfig(mqtt=mqtt, publish=publish, collector=collector)
