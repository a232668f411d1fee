"""Radio stack interfaces.

The connection manager only talks to these protocols. Each step of a
session setup is a separate awaitable so that callers can sequence them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from sensorlink.core.model import DetectedDevice, DeviceFilter

NotificationCallback = Callable[[bytes], None]
DisconnectCallback = Callable[[], None]


class GattCharacteristic(Protocol):
    @property
    def uuid(self) -> str: ...

    @property
    def properties(self) -> frozenset[str]:
        """GATT property names, e.g. ``notify`` or ``write-without-response``."""

    async def start_notifications(self, callback: NotificationCallback) -> None: ...

    async def write_value(self, data: bytes, *, with_response: bool) -> None: ...


class GattService(Protocol):
    async def get_characteristic(self, uuid: str) -> GattCharacteristic: ...


class GattConnection(Protocol):
    @property
    def is_connected(self) -> bool: ...

    async def get_service(self, uuid: str) -> GattService: ...

    async def disconnect(self) -> None: ...


class RadioStack(Protocol):
    async def request_device(self, device_filter: DeviceFilter, *, timeout_s: float) -> Any:
        """Return an opaque device handle, or raise DeviceSelectionCancelled."""

    async def discover(self, device_filter: DeviceFilter | None, *, timeout_s: float) -> list[DetectedDevice]: ...

    async def connect(self, device: Any, *, on_disconnect: DisconnectCallback) -> GattConnection: ...
