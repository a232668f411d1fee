"""Device filter matching used for device selection and scans."""

from __future__ import annotations

from collections.abc import Iterable

from sensorlink.core.model import DeviceFilter


def _name_prefix_match(device_name: str | None, device_filter: DeviceFilter) -> bool:
    if not device_filter.name_prefix or not device_name:
        return False
    return device_name.startswith(device_filter.name_prefix)


def _service_match(service_uuids: Iterable[str], device_filter: DeviceFilter) -> bool:
    wanted = device_filter.service_uuid.lower()
    return any(uuid.lower() == wanted for uuid in service_uuids)


def matches_filter(
    address: str,
    device_name: str | None,
    service_uuids: Iterable[str],
    device_filter: DeviceFilter,
) -> bool:
    if device_filter.address:
        return address.upper() == device_filter.address.upper()
    return _name_prefix_match(device_name, device_filter) or _service_match(
        service_uuids, device_filter
    )
