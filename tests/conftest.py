from __future__ import annotations

from typing import List

import pytest

from models.readings import RawTelegram

# Captured from an ISKRA AM550 meter; serial numbers shortened.
SAMPLE_TELEGRAM = [
    "/ISK5\\2M550E-1012",
    "",
    "1-3:0.2.8(50)",
    "0-0:1.0.0(201221010833W)",
    "0-0:96.1.1(123456)",
    "1-0:1.8.1(002134.177*kWh)",
    "1-0:1.8.2(003448.211*kWh)",
    "1-0:2.8.1(000000.000*kWh)",
    "1-0:2.8.2(000000.000*kWh)",
    "0-0:96.14.0(0001)",
    "1-0:1.7.0(00.229*kW)",
    "1-0:2.7.0(00.000*kW)",
    "0-0:96.7.21(00012)",
    "0-0:96.7.9(00002)",
    "1-0:99.97.0()",
    "1-0:32.32.0(00012)",
    "1-0:32.36.0(00001)",
    "0-0:96.13.0()",
    "1-0:32.7.0(236.7*V)",
    "1-0:31.7.0(001*A)",
    "1-0:21.7.0(00.220*kW)",
    "1-0:22.7.0(00.000*kW)",
    "0-1:24.1.0(003)",
    "0-1:96.1.0(123456)",
    "0-1:24.2.1(101221010511W)(03799.479*m3)",
    "!5C6B",
]


@pytest.fixture()
def telegram_lines() -> List[str]:
    """A full telegram including its ``!`` end line."""
    return list(SAMPLE_TELEGRAM)


@pytest.fixture()
def raw_telegram() -> RawTelegram:
    return RawTelegram(lines=tuple(SAMPLE_TELEGRAM[:-1]))
