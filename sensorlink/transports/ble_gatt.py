"""BLE GATT radio stack implementation backed by bleak."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.backends.service import BleakGATTService
from bleak.exc import BleakError

from sensorlink.core.device_match import matches_filter
from sensorlink.core.errors import (
    CharacteristicNotFound,
    ConnectionLost,
    DeviceDiscoveryError,
    DeviceSelectionCancelled,
    ServiceNotFound,
    WriteFailed,
)
from sensorlink.core.model import DetectedDevice, DeviceFilter
from sensorlink.transports.base import DisconnectCallback, NotificationCallback

LOGGER = logging.getLogger(__name__)

_PLATFORM_ERRORS = (BleakError, OSError, asyncio.TimeoutError)


class BleakCharacteristic:
    def __init__(self, client: BleakClient, characteristic: BleakGATTCharacteristic) -> None:
        self._client = client
        self._characteristic = characteristic

    @property
    def uuid(self) -> str:
        return self._characteristic.uuid

    @property
    def properties(self) -> frozenset[str]:
        return frozenset(self._characteristic.properties)

    async def start_notifications(self, callback: NotificationCallback) -> None:
        def _notify_handler(_: BleakGATTCharacteristic, data: bytearray) -> None:
            callback(bytes(data))

        try:
            await self._client.start_notify(self._characteristic, _notify_handler)
        except _PLATFORM_ERRORS as exc:
            raise ConnectionLost(f"Could not start notifications on {self.uuid}: {exc}") from exc

    async def write_value(self, data: bytes, *, with_response: bool) -> None:
        try:
            await self._client.write_gatt_char(self._characteristic, data, response=with_response)
        except _PLATFORM_ERRORS as exc:
            raise WriteFailed(f"BLE write to {self.uuid} failed: {exc}") from exc


class BleakService:
    def __init__(self, client: BleakClient, service: BleakGATTService) -> None:
        self._client = client
        self._service = service

    async def get_characteristic(self, uuid: str) -> BleakCharacteristic:
        characteristic = self._service.get_characteristic(uuid)
        if characteristic is None:
            raise CharacteristicNotFound(
                f"Characteristic {uuid} not found in service {self._service.uuid}"
            )
        return BleakCharacteristic(self._client, characteristic)


class BleakConnection:
    def __init__(self, client: BleakClient) -> None:
        self._client = client

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    async def get_service(self, uuid: str) -> BleakService:
        if not self._client.is_connected:
            raise ConnectionLost("Link dropped before service discovery")
        service = self._client.services.get_service(uuid)
        if service is None:
            raise ServiceNotFound(f"Service {uuid} not found on {self._client.address}")
        return BleakService(self._client, service)

    async def disconnect(self) -> None:
        await self._client.disconnect()


class BleakRadioStack:
    def __init__(self, *, connect_timeout_s: float = 10.0) -> None:
        self.connect_timeout_s = connect_timeout_s

    async def request_device(self, device_filter: DeviceFilter, *, timeout_s: float) -> BLEDevice:
        def _filter(device: BLEDevice, adv: AdvertisementData) -> bool:
            name = adv.local_name or device.name
            return matches_filter(device.address, name, adv.service_uuids, device_filter)

        try:
            device = await BleakScanner.find_device_by_filter(_filter, timeout=timeout_s)
        except _PLATFORM_ERRORS as exc:
            raise DeviceDiscoveryError(f"BLE scan failed: {exc}") from exc
        if device is None:
            raise DeviceSelectionCancelled(
                f"No matching device found within {timeout_s:g}s"
            )
        LOGGER.debug("Selected device %s (%s)", device.address, device.name)
        return device

    async def discover(
        self,
        device_filter: DeviceFilter | None,
        *,
        timeout_s: float,
    ) -> list[DetectedDevice]:
        try:
            found = await BleakScanner.discover(timeout=timeout_s, return_adv=True)
        except _PLATFORM_ERRORS as exc:
            raise DeviceDiscoveryError(f"BLE scan failed: {exc}") from exc

        devices: list[DetectedDevice] = []
        for device, adv in found.values():
            name = adv.local_name or device.name
            if device_filter and not matches_filter(
                device.address, name, adv.service_uuids, device_filter
            ):
                continue
            devices.append(DetectedDevice(address=device.address, name=name or "<no-name>", rssi=adv.rssi))
        return sorted(devices, key=lambda d: d.rssi if d.rssi is not None else -999, reverse=True)

    async def connect(self, device: Any, *, on_disconnect: DisconnectCallback) -> BleakConnection:
        def _disconnected(_: BleakClient) -> None:
            on_disconnect()

        client = BleakClient(
            device,
            disconnected_callback=_disconnected,
            timeout=self.connect_timeout_s,
        )
        try:
            await client.connect()
        except _PLATFORM_ERRORS as exc:
            raise ConnectionLost(f"BLE connect failed for {_address(device)}: {exc}") from exc
        if not client.is_connected:
            raise ConnectionLost(f"BLE connect failed for {_address(device)}")
        return BleakConnection(client)


def _address(device: Any) -> str:
    return getattr(device, "address", str(device))
