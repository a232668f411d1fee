"""Telemetry payload decoding and reading formatting.

Frames are UTF-8 text of the form ``airTemp=23.41;hum=45.2;waterTemp=18.06``.
Decoding never fails: malformed fragments are dropped.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, localcontext

from sensorlink.core.model import ReadingSpec, RenderedReading, TelemetryFrame

FIELD_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = "="

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
_RADIX_RE = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_RADIXES = {"x": 16, "o": 8, "b": 2}
_INFINITIES = {"Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}

DEFAULT_READINGS: tuple[ReadingSpec, ...] = (
    ReadingSpec(key="airTemp", label="Air temperature", decimals=2, unit="°C"),
    ReadingSpec(key="hum", label="Humidity", decimals=1, unit="%"),
    ReadingSpec(key="waterTemp", label="Water temperature", decimals=2, unit="°C"),
)


def parse_key_value_payload(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for segment in text.split(FIELD_SEPARATOR):
        if not segment:
            continue
        key, sep, value = segment.partition(KEY_VALUE_SEPARATOR)
        key = key.strip()
        if not sep or not key:
            continue
        fields[key] = value.strip()
    return fields


def decode_frame(text: str) -> TelemetryFrame:
    return TelemetryFrame(raw=text, fields=parse_key_value_payload(text))


def parse_number(value: str) -> float:
    """Interpret `value` with JavaScript ``Number()`` string rules.

    Blank text is zero, ``Infinity`` is the only infinity spelling, and
    ``0x``/``0o``/``0b`` integer literals are accepted. Anything else that is
    not a plain decimal literal is NaN.
    """
    text = value.strip()
    if not text:
        return 0.0
    if text in _INFINITIES:
        return _INFINITIES[text]
    match = _RADIX_RE.match(text)
    if match:
        try:
            digits = int(match.group(2), _RADIXES[match.group(1).lower()])
        except ValueError:
            return math.nan
        try:
            return float(digits)
        except OverflowError:
            return math.inf
    if _DECIMAL_RE.match(text):
        return float(text)
    return math.nan


def format_value(value: str, decimals: int) -> str:
    """Fixed-point text with ties rounded away from zero; NaN and Infinity spelled out."""
    number = parse_number(value)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if abs(number) >= 1e21:
        return repr(number)
    if number == 0:
        number = 0.0
    with localcontext() as ctx:
        ctx.prec = 64
        fixed = Decimal(number).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    return f"{fixed:f}"


def render_readings(
    frame: TelemetryFrame,
    specs: Iterable[ReadingSpec] = DEFAULT_READINGS,
) -> list[RenderedReading]:
    """Format the recognized readings present in `frame`, in the order of `specs`."""
    rendered: list[RenderedReading] = []
    for spec in specs:
        value = frame.fields.get(spec.key)
        if value is None:
            continue
        rendered.append(RenderedReading(spec=spec, text=format_value(value, spec.decimals)))
    return rendered
