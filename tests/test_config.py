"""Tests for CFG configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from jbod_tap.config import CollectorConfig, load_config
from jbod_tap.parsing import SensorClass

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config" / "example.cfg"


class TestLoadConfig:
    """Tests for load_config."""

    def test_example_config(self):
        config = load_config(EXAMPLE_CONFIG)

        assert config.mqtt.base_topic == "telemetry/jbod"
        assert config.mqtt.username is None
        assert config.publish.interval_s == 60
        assert config.collector.sg_ses_path == "/usr/bin/sg_ses"
        assert config.collector.sensor_classes == (
            SensorClass.FAN,
            SensorClass.TEMPERATURE,
            SensorClass.VOLTAGE,
        )

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.cfg")

    def test_missing_sections_fall_back(self, tmp_path):
        path = tmp_path / "jbod-tap.cfg"
        path.write_text("[collector]\nlsscsi_path = /opt/bin/lsscsi\n", encoding="utf-8")

        config = load_config(path)

        assert config.collector.lsscsi_path == "/opt/bin/lsscsi"
        assert config.collector.sg_inq_path == CollectorConfig().sg_inq_path
        assert config.mqtt.host == "localhost"
        assert config.mqtt.port == 1883
        assert config.publish.interval_s == 60

    def test_sensor_class_subset(self, tmp_path):
        path = tmp_path / "jbod-tap.cfg"
        path.write_text("[collector]\nsensor_classes = Voltage, fan\n", encoding="utf-8")

        config = load_config(path)

        assert config.collector.sensor_classes == (SensorClass.VOLTAGE, SensorClass.FAN)

    def test_unknown_sensor_class(self, tmp_path):
        path = tmp_path / "jbod-tap.cfg"
        path.write_text("[collector]\nsensor_classes = fan, current\n", encoding="utf-8")

        with pytest.raises(ValueError, match="current"):
            load_config(path)

    def test_mqtt_credentials_and_tls(self, tmp_path):
        path = tmp_path / "jbod-tap.cfg"
        path.write_text(
            "[mqtt]\nhost = broker.lan\nusername = tap\npassword = s3cret\n"
            "tls = yes\nca_cert = /etc/ssl/ca.pem\nqos = 1\nretain = true\n",
            encoding="utf-8",
        )

        mqtt = load_config(path).mqtt

        assert mqtt.host == "broker.lan"
        assert mqtt.username == "tap"
        assert mqtt.password == "s3cret"
        assert mqtt.tls_enabled is True
        assert mqtt.ca_cert == "/etc/ssl/ca.pem"
        assert mqtt.qos == 1
        assert mqtt.retain is True
