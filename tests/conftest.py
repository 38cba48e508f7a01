"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import pytest

from jbod_tap.config import CollectorConfig
from jbod_tap.exceptions import ToolUnavailableError
from jbod_tap.runner import CommandResult


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "parsing: mark test as a pure text parsing test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an end-to-end inventory test"
    )


LSSCSI_OUTPUT = """\
[0:0:0:0]    disk    ATA      INTEL SSDSC2KB48 0150  /dev/sda   /dev/sg0
[0:0:12:0]   enclosu HGST     H4060-J          2033  -          /dev/sg12
[0:0:13:0]   disk    HGST     HUH721212AL5200  A925  /dev/sdb   /dev/sg13
[1:0:0:0]    enclosu HGST     H4060-J          2033  -          /dev/sg30
[2:0:5:0]    enclosu SEAGATE  SP-3584-E12      3530  -          /dev/sg45
"""

SG_INQ_SG12 = """\
standard INQUIRY:
  PQual=0  PDT=13  RMB=0  LU_CONG=0  hot_pluggable=0  version=0x06  [SPC-4]
  [AERC=0]  [TrmTsk=0]  NormACA=0  HiSUP=1  Resp_data_format=2
 Vendor identification: HGST
 Product identification: H4060-J
 Product revision level: 2033
 Unit serial number: 2MY2E4GA
"""

SG_INQ_SG30 = """\
standard INQUIRY:
 Vendor identification: HGST
 Product identification: H4060-J
 Product revision level: 2033
 Unit serial number: 2MY2K8TB
"""

SG_INQ_SG45 = """\
standard INQUIRY:
 Vendor identification: SEAGATE
 Product identification: SP-3584-E12
 Product revision level: 3530
 Unit serial number: SHX0969026G0CGV
"""

SES_LISTING = """\
  HGST      H4060-J           2033
  Primary enclosure logical identifier (hex): 5000cca2530a2c3f
Element type: Cooling, subenclosure id: 0 [ti=3]
FanOverall [3,-1]  Element type: Cooling
Fan1 [3,0]  Element type: Cooling
Fan2 [3,1]  Element type: Cooling
Fan1 [3,0]  Element type: Cooling
Element type: Temperature sensor, subenclosure id: 0 [ti=4]
TempIOM A [4,0]  Element type: Temperature sensor
TempIOM B [4,1]  Element type: Temperature sensor
TempIOM A [4,0]  Element type: Temperature sensor
Element type: Voltage sensor, subenclosure id: 0 [ti=5]
5V sensor [5,0]  Element type: Voltage sensor
12V sensor [5,1]  Element type: Voltage sensor
"""

FAN_DETAIL = """\
  HGST      H4060-J           2033
Enclosure Status diagnostic page:
  INVOP=0, INFO=0, NON-CRIT=0, CRIT=0, UNRECOV=0
    Element 0 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: OK
      Ident=0, Do not remove=0, Hot swap=0, Fail=0, Requested on=1
      Off=0, Actual speed=7400 rpm, Fan at third lowest speed
"""

FAN_OVERALL_DETAIL = """\
    Overall descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: Unsupported
      Ident=0, Do not remove=0, Hot swap=0, Fail=0, Requested on=0
      Off=0, Actual speed=0 rpm, Fan stopped
"""

FAN2_DETAIL = """\
    Element 1 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: Critical
      Ident=0, Do not remove=0, Hot swap=0, Fail=1, Requested on=1
      Off=0, Actual speed=1230 rpm, Fan at lowest speed
"""

TEMP_DETAIL = """\
    Element 0 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: OK
      Ident=0, Fail=0, OT failure=0, OT warning=0, UT failure=0
      UT warning=0
      Temperature=31 C
"""

TEMP_NOT_INSTALLED_DETAIL = """\
    Element 1 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: Not installed
      Ident=0, Fail=0, OT failure=0, OT warning=0, UT failure=0
      UT warning=0
      Temperature=<reserved>
"""

VOLTAGE_DETAIL = """\
    Element 0 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: OK
      Ident=0, Fail=0,  Warn Over=0, Warn Under=0, Crit Over=0
      Crit Under=0
      Voltage: 5.03 volts
"""

VOLTAGE_GARBLED_DETAIL = """\
    Element 1 descriptor:
      Predicted failure=0, Disabled=0, Swap=0, status: OK
      Voltage: n/a volts
"""


class FakeRunner:
    """Serves canned tool output keyed by the exact argv."""

    def __init__(self, outputs=None, missing=()):
        self.outputs = {tuple(key): value for key, value in (outputs or {}).items()}
        self.missing = set(missing)
        self.calls = []

    def _lookup(self, command):
        self.calls.append(list(command))
        if command[0] in self.missing:
            raise ToolUnavailableError(list(command), "No such file or directory")
        return self.outputs.get(tuple(command), "")

    def run(self, command):
        return CommandResult(stdout=self._lookup(command), returncode=0)

    def stream(self, command):
        yield from self._lookup(command).splitlines()

    def calls_to(self, *prefix):
        return [call for call in self.calls if call[: len(prefix)] == list(prefix)]


def ses_outputs(device, serial_listing=SES_LISTING):
    """Canned sg_ses output for one enclosure device."""
    return {
        ("sg_ses", "-j", "-ff", device): serial_listing,
        ("sg_ses", "--index=3,-1", device): FAN_OVERALL_DETAIL,
        ("sg_ses", "--index=3,0", device): FAN_DETAIL,
        ("sg_ses", "--index=3,1", device): FAN2_DETAIL,
        ("sg_ses", "--index=4,0", device): TEMP_DETAIL,
        ("sg_ses", "--index=4,1", device): TEMP_NOT_INSTALLED_DETAIL,
        ("sg_ses", "--index=5,0", device): VOLTAGE_DETAIL,
        ("sg_ses", "--index=5,1", device): VOLTAGE_GARBLED_DETAIL,
    }


@pytest.fixture
def collector_config():
    """Collector config pointing at bare tool names."""
    return CollectorConfig(
        lsscsi_path="lsscsi",
        sg_inq_path="sg_inq",
        sg_ses_path="sg_ses",
    )


@pytest.fixture
def jbod_outputs():
    """Two HGST shelves and one Seagate shelf with identical SES layouts."""
    outputs = {
        ("lsscsi", "-g"): LSSCSI_OUTPUT,
        ("sg_inq", "/dev/sg12"): SG_INQ_SG12,
        ("sg_inq", "/dev/sg30"): SG_INQ_SG30,
        ("sg_inq", "/dev/sg45"): SG_INQ_SG45,
    }
    for device in ("/dev/sg12", "/dev/sg30", "/dev/sg45"):
        outputs.update(ses_outputs(device))
    return outputs


@pytest.fixture
def fake_runner(jbod_outputs):
    return FakeRunner(jbod_outputs)
