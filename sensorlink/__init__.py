"""Headless BLE GATT client for semicolon-delimited sensor telemetry."""

__version__ = "0.1.0"
