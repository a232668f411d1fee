"""Service layer used by the CLI and the public API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from sensorlink.core.errors import CommandResolutionError, ProfileResolutionError
from sensorlink.core.manager import ConnectionManager
from sensorlink.core.model import DetectedDevice, DeviceFilter, GattProfile
from sensorlink.core.profile_loader import load_profiles
from sensorlink.core.sinks import DisplaySink
from sensorlink.transports.base import RadioStack
from sensorlink.transports.ble_gatt import BleakRadioStack

LOGGER = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "esp32_sensors"


class SensorService:
    def __init__(self, *, radio: RadioStack | None = None) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.radio = radio or BleakRadioStack()

    def list_profiles(self) -> list[GattProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def resolve_profile(
        self,
        profile_id: str | None = None,
        *,
        address: str | None = None,
    ) -> GattProfile:
        key = profile_id or DEFAULT_PROFILE_ID
        profile = self.profiles.get(key)
        if profile is None:
            available = ", ".join(sorted(self.profiles)) or "<none>"
            raise ProfileResolutionError(f"Unknown profile '{key}'. Available: {available}")
        if address:
            profile = _with_address(profile, address)
        return profile

    def manager(
        self,
        profile: GattProfile,
        sink: DisplaySink | None = None,
    ) -> ConnectionManager:
        return ConnectionManager(self.radio, profile, sink)

    async def scan(
        self,
        profile_id: str | None = None,
        *,
        timeout_s: float | None = None,
        show_all: bool = False,
    ) -> list[DetectedDevice]:
        profile = self.resolve_profile(profile_id)
        return await self.radio.discover(
            None if show_all else profile.filter,
            timeout_s=timeout_s if timeout_s is not None else profile.scan_timeout_s,
        )

    async def monitor(
        self,
        profile: GattProfile,
        sink: DisplaySink,
        *,
        duration_s: float | None = None,
    ) -> None:
        """Stream telemetry into `sink` until the peer drops or `duration_s` elapses."""
        manager = self.manager(profile, sink)
        await manager.connect()
        try:
            if duration_s is None:
                await manager.wait_closed()
            else:
                try:
                    await asyncio.wait_for(manager.wait_closed(), timeout=duration_s)
                except asyncio.TimeoutError:
                    LOGGER.debug("Monitor duration of %ss elapsed", duration_s)
        finally:
            await manager.disconnect()

    async def send_command(
        self,
        profile: GattProfile,
        command: str,
        sink: DisplaySink | None = None,
    ) -> str:
        """Connect, send one named command, and disconnect. Returns the token sent."""
        token = profile.commands.get(command)
        if token is None:
            available = ", ".join(sorted(profile.commands))
            raise CommandResolutionError(
                f"Profile '{profile.id}' does not define command '{command}'. Available: {available}"
            )
        manager = self.manager(profile, sink)
        await manager.connect()
        try:
            await manager.send_command(token)
        finally:
            await manager.disconnect()
        return token


def _with_address(profile: GattProfile, address: str) -> GattProfile:
    return replace(profile, filter=replace(profile.filter, address=address))
