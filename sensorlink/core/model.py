"""Core data models used across loader, manager, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConnectionStatus(str, Enum):
    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting..."
    CONNECTED = "Connected"


@dataclass(frozen=True)
class DeviceFilter:
    service_uuid: str
    name_prefix: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class ReadingSpec:
    key: str
    label: str
    decimals: int
    unit: str = ""


@dataclass(frozen=True)
class GattProfile:
    id: str
    name: str
    filter: DeviceFilter
    service_uuid: str
    telemetry_char_uuid: str
    command_char_uuid: str
    readings: tuple[ReadingSpec, ...]
    commands: dict[str, str]
    scan_timeout_s: float = 10.0


@dataclass(frozen=True)
class DetectedDevice:
    address: str
    name: str
    rssi: int | None = None


@dataclass(frozen=True)
class TelemetryFrame:
    raw: str
    fields: dict[str, str]


@dataclass(frozen=True)
class RenderedReading:
    spec: ReadingSpec
    text: str


@dataclass
class Session:
    """Live handles of one connected peripheral.

    Only constructed once every handle has been resolved, so holders of a
    `Session` never see a partially usable link.
    """

    device: Any
    connection: Any
    telemetry_char: Any
    command_char: Any
    write_without_response: bool = False
    generation: int = field(default=0, compare=False)


class Command(str, Enum):
    ON = "1"
    OFF = "0"
