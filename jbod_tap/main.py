from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Any

from jbod_tap.config import AppConfig, CollectorConfig, MqttConfig, PublishConfig, load_config
from jbod_tap.exceptions import ToolUnavailableError
from jbod_tap.inventory import JbodInventory
from jbod_tap.logging_utils import configure_logging, resolve_log_level
from jbod_tap.models import installed_only
from jbod_tap.mqtt_client import MqttPublisher
from jbod_tap.schema import validate_payload

LIST_CHOICES = ("enclosures", "fans", "temperatures", "voltages")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="JBOD enclosure inventory exporter")
    parser.add_argument(
        "--config",
        default="/etc/jbod-tap/jbod-tap.cfg",
        help="Path to CFG configuration file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    parser.add_argument(
        "--list",
        choices=LIST_CHOICES,
        help="Print one inventory collection as JSON and exit",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="With --list, include sensors reported as 'Not installed'",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log payloads without publishing to MQTT",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Collect and publish a single payload, then exit",
    )
    parser.add_argument(
        "--dump-json",
        help="Write the JSON payload to a file (overwrites on each loop)",
    )
    parser.add_argument(
        "--publish-status",
        metavar="STATUS",
        help="Publish a status (e.g., 'maintenance', 'online') to the availability "
             "topic and exit.",
    )
    return parser


def list_collection(inventory: JbodInventory, name: str, include_all: bool) -> list[dict[str, Any]]:
    if name == "enclosures":
        return [enclosure.as_dict() for enclosure in inventory.discover_enclosures()]
    if name == "fans":
        return [fan.as_dict() for fan in inventory.collect_fan_readings()]
    if name == "temperatures":
        readings = inventory.collect_temperature_readings()
    else:
        readings = inventory.collect_voltage_readings()
    if not include_all:
        readings = installed_only(readings)
    return [reading.as_dict() for reading in readings]


def _load(args: argparse.Namespace, logger: logging.Logger) -> AppConfig:
    try:
        return load_config(args.config)
    except FileNotFoundError:
        if not args.list:
            raise
        logger.debug("No config at %s; using defaults for --list.", args.config)
        return AppConfig(mqtt=MqttConfig(), publish=PublishConfig(), collector=CollectorConfig())


def _collect_validated(inventory: JbodInventory, logger: logging.Logger) -> dict[str, Any]:
    payload = inventory.collect()
    schema_errors = validate_payload(payload)
    if schema_errors:
        logger.warning("Schema validation failed with %s errors.", len(schema_errors))
        logger.debug("Schema errors: %s", schema_errors)
    else:
        logger.debug("Schema validation passed.")
    return payload


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    level = resolve_log_level(args.verbose, args.log_level)
    configure_logging(level)
    logger = logging.getLogger("jbod_tap")
    try:
        config = _load(args, logger)
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        sys.exit(2)
    pretty_print = level <= logging.DEBUG

    if args.publish_status:
        publisher = MqttPublisher(config.mqtt)
        publisher.connect()
        time.sleep(0.5)
        if publisher.connected:
            publisher.publish_status(args.publish_status)
            time.sleep(0.5)
        else:
            logger.error("Failed to connect to MQTT broker")
        publisher.disconnect()
        return

    inventory = JbodInventory(config.collector)

    if args.list:
        try:
            collection = list_collection(inventory, args.list, args.all)
        except ToolUnavailableError as exc:
            logger.error("%s", exc)
            sys.exit(1)
        print(json.dumps(collection, indent=2))
        return

    publisher = None if args.dry_run else MqttPublisher(config.mqtt)
    if publisher is not None:
        publisher.connect()

    interval = max(1, config.publish.interval_s)
    discovery_sent = False
    try:
        while True:
            payload = _collect_validated(inventory, logger)
            payload_json = json.dumps(payload, indent=2) if pretty_print else json.dumps(payload)
            if args.dump_json:
                with open(args.dump_json, "w", encoding="utf-8") as handle:
                    handle.write(payload_json)
            if args.dry_run:
                logger.debug("Payload: %s", payload_json)
            elif publisher is not None:
                if not discovery_sent:
                    publisher.publish_discovery(payload)
                    discovery_sent = True
                publisher.publish(payload_json)
            if args.once:
                logger.info("Single-run mode enabled; exiting after initial payload.")
                break
            time.sleep(interval)
    except ToolUnavailableError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("jbod-tap stopped.")
    finally:
        if publisher is not None:
            publisher.disconnect()


if __name__ == "__main__":
    main()
