"""Connection lifecycle for a single GATT peripheral session.

State machine::

    Disconnected -> Connecting... -> Connected -> Disconnected
    Connecting... -> Disconnected   (any setup failure)

Every connect attempt is tagged with a generation number. disconnect() and
peer-initiated drops bump the generation, so an attempt that settles after
either of them cannot install its handles, and disconnect callbacks from an
older link cannot clear a newer session.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from sensorlink.core.decoder import decode_frame
from sensorlink.core.errors import (
    AlreadyConnected,
    CharacteristicNotFound,
    CommandResolutionError,
    ConnectionLost,
    WriteFailed,
)
from sensorlink.core.model import Command, ConnectionStatus, GattProfile, Session
from sensorlink.core.sinks import DisplaySink
from sensorlink.transports.base import GattCharacteristic, GattConnection, RadioStack

LOGGER = logging.getLogger(__name__)

NOTIFY_PROPERTIES = frozenset({"notify", "indicate"})
WRITE_PROPERTIES = frozenset({"write", "write-without-response"})
WRITE_WITHOUT_RESPONSE = "write-without-response"


class _NullSink:
    def on_status(self, status: ConnectionStatus) -> None:
        pass

    def on_frame(self, frame: Any) -> None:
        pass

    def log(self, message: str) -> None:
        pass


@dataclass
class _Attempt:
    generation: int
    connection: GattConnection | None = None


class ConnectionManager:
    def __init__(
        self,
        radio: RadioStack,
        profile: GattProfile,
        sink: DisplaySink | None = None,
    ) -> None:
        self.radio = radio
        self.profile = profile
        self.sink: DisplaySink = sink or _NullSink()
        self._session: Session | None = None
        self._pending: _Attempt | None = None
        self._generation = 0
        self._status = ConnectionStatus.DISCONNECTED
        self._closed = asyncio.Event()
        self._closed.set()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> Session:
        if self._status is not ConnectionStatus.DISCONNECTED:
            raise AlreadyConnected(f"Session is already {self._status.value.rstrip('.').lower()}")

        self._generation += 1
        attempt = _Attempt(generation=self._generation)
        self._pending = attempt
        self._closed.clear()
        self._set_status(ConnectionStatus.CONNECTING)

        try:
            session = await self._setup(attempt)
        except BaseException as exc:
            await self._abandon(attempt, exc)
            raise

        self._pending = None
        self._session = session
        self._set_status(ConnectionStatus.CONNECTED)
        self._log("Connected and receiving data.")
        return session

    async def disconnect(self) -> None:
        connection: GattConnection | None = None
        if self._session is not None:
            connection = self._session.connection
        elif self._pending is not None:
            connection = self._pending.connection

        self._generation += 1
        try:
            if connection is not None and connection.is_connected:
                await _close_quietly(connection)
        finally:
            self._log("Device disconnected.")
            self._clear()

    def on_peer_disconnected(self) -> None:
        self._generation += 1
        self._log("Device disconnected.")
        self._clear()

    async def send_command(self, token: str) -> bool:
        """Write `token` to the command characteristic.

        Returns False without writing when there is no active session.
        """
        session = self._session
        if session is None:
            LOGGER.debug("No active session, dropping command %r", token)
            return False

        payload = token.encode("utf-8")
        try:
            await session.command_char.write_value(
                payload,
                with_response=not session.write_without_response,
            )
        except WriteFailed as exc:
            self._log(f"ERROR: {exc}")
            raise
        except Exception as exc:
            self._log(f"ERROR: {exc}")
            raise WriteFailed(f"Command write failed: {exc}") from exc

        self._log(f"Sent command: {token}")
        return True

    async def send_named_command(self, name: str) -> bool:
        token = self.profile.commands.get(name)
        if token is None:
            available = ", ".join(sorted(self.profile.commands))
            raise CommandResolutionError(
                f"Profile '{self.profile.id}' does not define command '{name}'. Available: {available}"
            )
        return await self.send_command(token)

    async def set_actuator(self, on: bool) -> bool:
        return await self.send_command((Command.ON if on else Command.OFF).value)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def _setup(self, attempt: _Attempt) -> Session:
        profile = self.profile

        self._log("Requesting device...")
        device = await self.radio.request_device(profile.filter, timeout_s=profile.scan_timeout_s)
        self._ensure_current(attempt)

        self._log(f"Connecting to {_device_label(device)}...")
        generation = attempt.generation
        attempt.connection = await self.radio.connect(
            device,
            on_disconnect=lambda: self._peer_dropped(generation),
        )
        self._ensure_current(attempt)

        self._log("Getting service...")
        service = await attempt.connection.get_service(profile.service_uuid)
        self._ensure_current(attempt)

        self._log("Getting characteristics...")
        telemetry_char = await service.get_characteristic(profile.telemetry_char_uuid)
        command_char = await service.get_characteristic(profile.command_char_uuid)
        self._ensure_current(attempt)
        _require_any(telemetry_char, NOTIFY_PROPERTIES)
        _require_any(command_char, WRITE_PROPERTIES)

        self._log("Starting notifications...")
        await telemetry_char.start_notifications(self._handle_notification)
        self._ensure_current(attempt)

        return Session(
            device=device,
            connection=attempt.connection,
            telemetry_char=telemetry_char,
            command_char=command_char,
            write_without_response=WRITE_WITHOUT_RESPONSE in command_char.properties,
            generation=attempt.generation,
        )

    async def _abandon(self, attempt: _Attempt, exc: BaseException) -> None:
        current = attempt.generation == self._generation
        if current:
            self._generation += 1
        connection = attempt.connection
        if connection is not None and connection.is_connected:
            await _close_quietly(connection)
        if current:
            self._clear()
        if isinstance(exc, Exception):
            LOGGER.warning("Connect attempt failed: %s", exc)
            self.sink.log(f"ERROR: {exc}")

    def _ensure_current(self, attempt: _Attempt) -> None:
        if attempt.generation != self._generation:
            raise ConnectionLost("Disconnected while the session was being set up")

    def _peer_dropped(self, generation: int) -> None:
        if generation != self._generation:
            LOGGER.debug("Ignoring disconnect callback from stale session %d", generation)
            return
        self.on_peer_disconnected()

    def _handle_notification(self, data: bytes) -> None:
        try:
            text = data.decode("utf-8", errors="replace")
            self._log(f"Notify: {text}")
            self.sink.on_frame(decode_frame(text))
        except Exception:
            LOGGER.exception("Failed to handle telemetry notification")

    def _clear(self) -> None:
        self._session = None
        self._pending = None
        self._set_status(ConnectionStatus.DISCONNECTED)
        self._closed.set()

    def _set_status(self, status: ConnectionStatus) -> None:
        self._status = status
        self.sink.on_status(status)

    def _log(self, message: str) -> None:
        LOGGER.info(message)
        self.sink.log(message)


def _require_any(characteristic: GattCharacteristic, required: frozenset[str]) -> None:
    if not required & characteristic.properties:
        wanted = " or ".join(sorted(required))
        raise CharacteristicNotFound(
            f"Characteristic {characteristic.uuid} does not support {wanted}"
        )


async def _close_quietly(connection: GattConnection) -> None:
    try:
        await connection.disconnect()
    except Exception as exc:
        LOGGER.warning("Closing the link failed: %s", exc)


def _device_label(device: Any) -> str:
    return getattr(device, "name", None) or "(no name)"
