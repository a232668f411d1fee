"""Display sinks receiving status transitions, frames, and log lines."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

import typer

from sensorlink.core.decoder import DEFAULT_READINGS, render_readings
from sensorlink.core.model import ConnectionStatus, ReadingSpec, TelemetryFrame


class DisplaySink(Protocol):
    def on_status(self, status: ConnectionStatus) -> None: ...

    def on_frame(self, frame: TelemetryFrame) -> None: ...

    def log(self, message: str) -> None: ...


class ConsoleSink:
    """Prints readings and timestamped diagnostics to the terminal."""

    def __init__(
        self,
        readings: tuple[ReadingSpec, ...] = DEFAULT_READINGS,
        *,
        show_raw: bool = False,
    ) -> None:
        self.readings = readings
        self.show_raw = show_raw
        self.status = ConnectionStatus.DISCONNECTED

    def on_status(self, status: ConnectionStatus) -> None:
        self.status = status
        typer.echo(f"Status: {status.value}", err=True)

    def on_frame(self, frame: TelemetryFrame) -> None:
        rendered = render_readings(frame, self.readings)
        if rendered:
            typer.echo("  ".join(f"{r.spec.label}: {r.text}{r.spec.unit}" for r in rendered))
        if self.show_raw:
            typer.echo(f"raw={frame.raw}")

    def log(self, message: str) -> None:
        typer.echo(f"[{datetime.now().strftime('%H:%M:%S')}] {message}", err=True)
