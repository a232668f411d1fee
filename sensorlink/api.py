"""Stable public API for building tooling on top of sensorlink.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from sensorlink.core.decoder import DEFAULT_READINGS, decode_frame, parse_key_value_payload, render_readings
from sensorlink.core.errors import (
    AlreadyConnected,
    CharacteristicNotFound,
    CommandResolutionError,
    ConnectError,
    ConnectionLost,
    DeviceDiscoveryError,
    DeviceSelectionCancelled,
    ProfileLoadError,
    ProfileResolutionError,
    ProfileValidationError,
    SensorlinkError,
    ServiceNotFound,
    WriteFailed,
)
from sensorlink.core.manager import ConnectionManager
from sensorlink.core.model import (
    Command,
    ConnectionStatus,
    DetectedDevice,
    DeviceFilter,
    GattProfile,
    ReadingSpec,
    RenderedReading,
    Session,
    TelemetryFrame,
)
from sensorlink.core.service import SensorService
from sensorlink.core.sinks import ConsoleSink, DisplaySink
from sensorlink.transports.base import RadioStack
from sensorlink.transports.ble_gatt import BleakRadioStack

__all__ = [
    "SensorlinkError",
    "ConnectError",
    "AlreadyConnected",
    "DeviceSelectionCancelled",
    "ServiceNotFound",
    "CharacteristicNotFound",
    "ConnectionLost",
    "WriteFailed",
    "CommandResolutionError",
    "DeviceDiscoveryError",
    "ProfileLoadError",
    "ProfileResolutionError",
    "ProfileValidationError",
    "Command",
    "ConnectionStatus",
    "DetectedDevice",
    "DeviceFilter",
    "GattProfile",
    "ReadingSpec",
    "RenderedReading",
    "Session",
    "TelemetryFrame",
    "DEFAULT_READINGS",
    "decode_frame",
    "parse_key_value_payload",
    "render_readings",
    "ConnectionManager",
    "ConsoleSink",
    "DisplaySink",
    "RadioStack",
    "BleakRadioStack",
    "Client",
]


class Client:
    """Public client for interacting with sensorlink core capabilities.

    A `Client` wraps profile loading and the radio stack. Lifecycle control
    is asynchronous: obtain a `ConnectionManager` with `open_manager()` and
    drive it from your own event loop.
    """

    def __init__(self, *, radio: RadioStack | None = None) -> None:
        self._service = SensorService(radio=radio)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_profiles(self) -> list[GattProfile]:
        return self._service.list_profiles()

    def get_profile(self, profile_id: str | None = None, *, address: str | None = None) -> GattProfile:
        return self._service.resolve_profile(profile_id, address=address)

    def open_manager(
        self,
        profile_id: str | None = None,
        *,
        address: str | None = None,
        sink: DisplaySink | None = None,
    ) -> ConnectionManager:
        return self._service.manager(self.get_profile(profile_id, address=address), sink)

    async def scan(self, profile_id: str | None = None, *, timeout_s: float | None = None) -> list[DetectedDevice]:
        return await self._service.scan(profile_id, timeout_s=timeout_s)

    @staticmethod
    def decode(text: str) -> TelemetryFrame:
        return decode_frame(text)
