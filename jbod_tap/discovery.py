from __future__ import annotations

import logging

from jbod_tap.models import Enclosure
from jbod_tap.runner import CommandRunner

ENCLOSURE_MARKER = "enclosu"
DEVICE_PREFIX = "/dev/"
MISSING = "NONE"

# sg_inq line prefix -> Enclosure field
IDENTITY_PREFIXES = {
    "Vendor identification:": "vendor",
    "Product identification:": "model",
    "Product revision level:": "revision",
    "Unit serial number:": "serial",
}


def parse_identity(output: str, default: str = MISSING) -> dict[str, str]:
    """Extract vendor/model/revision/serial from ``sg_inq`` output.

    Fields whose line never appears keep ``default``. When a prefix appears
    more than once the last value wins.
    """
    identity = {field: default for field in IDENTITY_PREFIXES.values()}
    for line in output.splitlines():
        stripped = line.lstrip()
        for prefix, field in IDENTITY_PREFIXES.items():
            if stripped.startswith(prefix):
                identity[field] = stripped[len(prefix):].strip()
                break
    return identity


def parse_enclosure_line(line: str) -> tuple[str, str] | None:
    """Return ``(slot, device_path)`` from one ``lsscsi -g`` enclosure row.

    The generic device column moves with the width of the vendor and model
    columns, so it is located by prefix rather than position.
    """
    tokens = line.split()
    if not tokens:
        return None
    device_path = next(
        (token for token in tokens if token.startswith(DEVICE_PREFIX)), None
    )
    if device_path is None:
        return None
    slot = tokens[0].replace("[", "").replace("]", "")
    return slot, device_path


class EnclosureDiscovery:
    def __init__(
        self,
        runner: CommandRunner,
        lsscsi_path: str = "lsscsi",
        sg_inq_path: str = "sg_inq",
        default: str = MISSING,
    ) -> None:
        self.runner = runner
        self.lsscsi_path = lsscsi_path
        self.sg_inq_path = sg_inq_path
        self.default = default
        self.logger = logging.getLogger(self.__class__.__name__)

    def discover(self) -> list[Enclosure]:
        """Return one Enclosure per enclosure row of ``lsscsi -g``.

        Raises:
            ToolUnavailableError: if lsscsi or sg_inq cannot be launched.
        """
        listing = self.runner.run([self.lsscsi_path, "-g"])
        enclosures: list[Enclosure] = []
        for line in listing.stdout.splitlines():
            if ENCLOSURE_MARKER not in line:
                continue
            parsed = parse_enclosure_line(line)
            if parsed is None:
                self.logger.debug("No device path in enclosure row: %s", line.strip())
                continue
            slot, device_path = parsed
            identity = self.identify(device_path)
            enclosures.append(
                Enclosure(slot=slot, device_path=device_path, **identity)
            )
        self.logger.debug("Discovered %s enclosure(s).", len(enclosures))
        return enclosures

    def identify(self, device_path: str) -> dict[str, str]:
        result = self.runner.run([self.sg_inq_path, device_path])
        return parse_identity(result.stdout, self.default)
