from __future__ import annotations

import json
import logging
import re
import ssl
from typing import Any

import paho.mqtt.client as mqtt

from jbod_tap.config import MqttConfig
from jbod_tap.models import NOT_INSTALLED

# payload key -> (reading field, unit, Home Assistant device class)
SENSOR_FIELDS = {
    "fans": ("speed", "RPM", None),
    "temperatures": ("temperature", "°C", "temperature"),
    "voltages": ("voltage", "V", "voltage"),
}

_UNSAFE = re.compile(r"[^A-Za-z0-9_]+")


def _object_id(*parts: str) -> str:
    return _UNSAFE.sub("_", "_".join(parts)).strip("_").lower()


def _index_id(index: str) -> str:
    """Spell out an element index so "3,-1" and "3,1" stay distinct."""
    return index.replace("-", "m").replace(",", "_")


class MqttPublisher:
    def __init__(self, config: MqttConfig) -> None:
        self.config = config
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=mqtt.MQTTv311,
        )
        self.logger = logging.getLogger(self.__class__.__name__)
        self._connected = False

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        if config.username:
            self.client.username_pw_set(config.username, config.password)
        if config.tls_enabled:
            self.client.tls_set(
                ca_certs=config.ca_cert,
                cert_reqs=ssl.CERT_REQUIRED,
            )

        self.client.will_set(
            self._availability_topic,
            payload="offline",
            qos=1,
            retain=True,
        )
        self.client.reconnect_delay_set(min_delay=1, max_delay=120)

    @property
    def _availability_topic(self) -> str:
        return f"{self.config.base_topic}/status"

    @property
    def connected(self) -> bool:
        return self._connected

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code == 0:
            self._connected = True
            self.logger.info(
                "Connected to MQTT broker %s:%s", self.config.host, self.config.port
            )
            self.client.publish(
                self._availability_topic,
                payload="online",
                qos=1,
                retain=True,
            )
        else:
            self._connected = False
            self.logger.error(
                "Failed to connect to MQTT broker, reason code: %s", reason_code
            )

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        self._connected = False
        if reason_code == 0:
            self.logger.info("Disconnected from MQTT broker (clean)")
        else:
            self.logger.warning(
                "Unexpectedly disconnected from MQTT broker, reason code: %s. "
                "Will attempt to reconnect.",
                reason_code,
            )

    def connect(self) -> None:
        self.logger.info(
            "Connecting to MQTT broker %s:%s", self.config.host, self.config.port
        )
        self.client.connect(
            self.config.host,
            self.config.port,
            keepalive=self.config.keepalive,
        )
        self.client.loop_start()

    def disconnect(self) -> None:
        if self._connected:
            self.client.publish(
                self._availability_topic,
                payload="offline",
                qos=1,
                retain=True,
            )
        self.client.loop_stop()
        self.client.disconnect()
        self.logger.info("Disconnected from MQTT broker")

    def publish_status(self, status: str) -> bool:
        """Publish a custom status to the availability topic.

        Args:
            status: Status string (e.g., "online", "offline", "maintenance")

        Returns:
            True if publish succeeded, False otherwise.
        """
        self.logger.info("Publishing status '%s' to %s", status, self._availability_topic)
        result = self.client.publish(
            self._availability_topic,
            payload=status,
            qos=1,
            retain=True,
        )
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error("Failed to publish status, error code: %s", result.rc)
            return False
        return True

    def publish(self, payload: str) -> bool:
        if not self._connected:
            self.logger.warning(
                "Not connected to MQTT broker, message may be queued"
            )
        self.logger.debug("Publishing inventory payload to %s", self.config.base_topic)
        result = self.client.publish(
            self.config.base_topic,
            payload=payload,
            qos=self.config.qos,
            retain=self.config.retain,
        )
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.error("Failed to publish message, error code: %s", result.rc)
            return False
        return True

    def discovery_messages(self, payload: dict[str, Any]) -> list[tuple[str, dict[str, Any]]]:
        """Build Home Assistant discovery configs, one per sensor element.

        Each enclosure becomes a device keyed by its serial number. Elements
        reported as not installed get no config.
        """
        devices: dict[str, dict[str, Any]] = {}
        for enclosure in payload.get("enclosures", []):
            devices[enclosure["serial"]] = {
                "identifiers": [_object_id(self.config.client_id, enclosure["serial"])],
                "name": f"Enclosure {enclosure['slot']}",
                "manufacturer": enclosure["vendor"],
                "model": enclosure["model"],
                "sw_version": enclosure["revision"],
                "serial_number": enclosure["serial"],
            }

        messages: list[tuple[str, dict[str, Any]]] = []
        for key, (field, unit, device_class) in SENSOR_FIELDS.items():
            for reading in payload.get(key, []):
                if reading.get("status") == NOT_INSTALLED:
                    continue
                serial = reading["serial"]
                object_id = _object_id(
                    self.config.client_id, serial, field, _index_id(reading["index"])
                )
                selector = (
                    f"value_json.{key} | selectattr('serial', 'eq', '{serial}')"
                    f" | selectattr('index', 'eq', '{reading['index']}') | first"
                )
                config: dict[str, Any] = {
                    "name": reading["description"] or f"{field} {reading['index']}",
                    "unique_id": object_id,
                    "state_topic": self.config.base_topic,
                    "value_template": f"{{{{ ({selector}).{field} }}}}",
                    "unit_of_measurement": unit,
                    "state_class": "measurement",
                    "availability_topic": self._availability_topic,
                    "payload_available": "online",
                    "payload_not_available": "offline",
                }
                if device_class:
                    config["device_class"] = device_class
                if serial in devices:
                    config["device"] = devices[serial]
                topic = f"{self.config.discovery_topic}/sensor/{object_id}/config"
                messages.append((topic, config))
        return messages

    def publish_discovery(self, payload: dict[str, Any]) -> None:
        messages = self.discovery_messages(payload)
        self.logger.debug("Publishing %s Home Assistant discovery configs", len(messages))
        for topic, config in messages:
            self.client.publish(
                topic,
                payload=json.dumps(config),
                qos=self.config.qos,
                retain=True,
            )
