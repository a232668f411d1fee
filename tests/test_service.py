from __future__ import annotations

import asyncio

import pytest

from fakes import FakeRadio, RecordingSink
from sensorlink.core.errors import CommandResolutionError, ProfileResolutionError, SensorlinkError
from sensorlink.core.model import ConnectionStatus, DetectedDevice
from sensorlink.core.service import SensorService


def test_resolve_default_profile_with_address() -> None:
    service = SensorService(radio=FakeRadio())
    profile = service.resolve_profile(address="AA:BB:CC:DD:EE:FF")
    assert profile.id == "esp32_sensors"
    assert profile.filter.address == "AA:BB:CC:DD:EE:FF"
    assert service.profiles["esp32_sensors"].filter.address is None


def test_unknown_profile_lists_available() -> None:
    service = SensorService(radio=FakeRadio())
    with pytest.raises(ProfileResolutionError) as exc:
        service.resolve_profile("nope")
    assert "esp32_sensors" in str(exc.value)
    assert isinstance(exc.value, SensorlinkError)


def test_send_command_connects_writes_and_disconnects() -> None:
    radio = FakeRadio()
    service = SensorService(radio=radio)
    sink = RecordingSink()

    token = asyncio.run(service.send_command(service.resolve_profile(), "on", sink))

    assert token == "1"
    assert radio.command.writes == [(b"1", False)]
    assert radio.connection.close_calls == 1
    assert sink.statuses[-1] is ConnectionStatus.DISCONNECTED


def test_send_unknown_command_does_not_connect() -> None:
    radio = FakeRadio()
    service = SensorService(radio=radio)

    with pytest.raises(CommandResolutionError):
        asyncio.run(service.send_command(service.resolve_profile(), "blink"))
    assert radio.calls == []


def test_monitor_streams_until_peer_drops() -> None:
    radio = FakeRadio()
    service = SensorService(radio=radio)
    sink = RecordingSink()

    def drop_later() -> None:
        radio.telemetry.notify(b"airTemp=20;hum=40")
        radio.on_disconnect()

    async def scenario() -> None:
        async def patched_connect(device, *, on_disconnect):
            radio.on_disconnect = on_disconnect
            asyncio.get_running_loop().call_later(0.01, drop_later)
            return radio.connection

        radio.connect = patched_connect
        await service.monitor(service.resolve_profile(), sink, duration_s=5.0)

    asyncio.run(scenario())
    assert sink.frames[0].fields == {"airTemp": "20", "hum": "40"}
    assert sink.statuses[-1] is ConnectionStatus.DISCONNECTED


def test_monitor_stops_after_duration() -> None:
    radio = FakeRadio()
    service = SensorService(radio=radio)

    asyncio.run(service.monitor(service.resolve_profile(), RecordingSink(), duration_s=0.01))
    assert radio.connection.close_calls == 1


def test_scan_uses_profile_filter() -> None:
    radio = FakeRadio()
    radio.devices = [DetectedDevice(address="AA", name="ESP32", rssi=-60)]
    service = SensorService(radio=radio)

    devices = asyncio.run(service.scan(timeout_s=0.1))
    assert devices == radio.devices
    assert radio.calls == ["discover"]
