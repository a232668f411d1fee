"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging

import typer

from sensorlink.core.decoder import decode_frame, render_readings
from sensorlink.core.errors import SensorlinkError
from sensorlink.core.service import SensorService
from sensorlink.core.sinks import ConsoleSink

app = typer.Typer(help="BLE GATT client for ESP32-style sensor/actuator peripherals")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_service() -> SensorService:
    service = SensorService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command("profiles")
def list_profiles() -> None:
    """List available device profiles, their readings and commands."""
    try:
        service = _build_service()
        profiles = service.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)

        for profile in profiles:
            typer.echo(f"{profile.id}: {profile.name}")
            typer.echo(f"  service: {profile.service_uuid}")
            typer.echo(f"  readings: {', '.join(r.key for r in profile.readings)}")
            commands = ", ".join(f"{name}={token}" for name, token in sorted(profile.commands.items()))
            typer.echo(f"  commands: {commands}")
    except SensorlinkError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("scan")
def scan(
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
    timeout: float | None = typer.Option(None, "--timeout", help="Scan duration in seconds"),
    show_all: bool = typer.Option(False, "--all", help="Show devices that do not match the profile filter"),
) -> None:
    """List advertising BLE devices matching the profile filter."""
    try:
        service = _build_service()
        devices = asyncio.run(service.scan(profile, timeout_s=timeout, show_all=show_all))
        if not devices:
            typer.echo("No matching BLE devices found")
            return

        for device in devices:
            rssi = f"{device.rssi} dBm" if device.rssi is not None else "?"
            typer.echo(f"{device.address} {device.name} ({rssi})")
    except SensorlinkError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("decode")
def decode(
    payload: str,
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
) -> None:
    """Decode a telemetry payload such as 'airTemp=23.41;hum=45.2'."""
    try:
        service = _build_service()
        target = service.resolve_profile(profile)
        frame = decode_frame(payload)
        for key, value in frame.fields.items():
            typer.echo(f"{key}={value}")
        for reading in render_readings(frame, target.readings):
            typer.echo(f"{reading.spec.label}: {reading.text}{reading.spec.unit}")
    except SensorlinkError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("monitor")
def monitor(
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
    address: str | None = typer.Option(None, "--address", help="Connect to this address only"),
    duration: float | None = typer.Option(None, "--duration", help="Stop after N seconds"),
    raw: bool = typer.Option(False, "--raw", help="Also print each raw frame"),
) -> None:
    """Connect and stream telemetry until the device disconnects."""
    try:
        service = _build_service()
        target = service.resolve_profile(profile, address=address)
        sink = ConsoleSink(target.readings, show_raw=raw)
        asyncio.run(service.monitor(target, sink, duration_s=duration))
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)
    except SensorlinkError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("command")
def send_command(
    name: str | None = typer.Argument(None),
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
    address: str | None = typer.Option(None, "--address", help="Connect to this address only"),
) -> None:
    """Send a named command (e.g. 'on'/'off') to the actuator.

    If NAME is omitted, prints the commands available on the profile.
    """
    try:
        service = _build_service()
        target = service.resolve_profile(profile, address=address)
        if name is None:
            names = ", ".join(sorted(target.commands))
            typer.echo(f"Available commands for {target.id}: {names}")
            return
        token = asyncio.run(service.send_command(target, name, ConsoleSink(target.readings)))
        typer.echo(f"Sent {name} ({token!r}) via {target.id}")
    except SensorlinkError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
