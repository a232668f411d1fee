from sensorlink.core.device_match import matches_filter
from sensorlink.core.model import DeviceFilter

SERVICE = "6e400001-b5a3-f393-e0a9-e50e24dcca9e"


def test_name_prefix_matches_without_service() -> None:
    device_filter = DeviceFilter(service_uuid=SERVICE, name_prefix="ESP32")
    assert matches_filter("AA:BB:CC:DD:EE:FF", "ESP32-Sensors", [], device_filter)


def test_service_uuid_matches_without_name() -> None:
    device_filter = DeviceFilter(service_uuid=SERVICE, name_prefix="ESP32")
    assert matches_filter("AA:BB:CC:DD:EE:FF", None, [SERVICE.upper()], device_filter)


def test_prefix_is_starts_with_not_contains() -> None:
    device_filter = DeviceFilter(service_uuid=SERVICE, name_prefix="ESP32")
    assert not matches_filter("AA:BB:CC:DD:EE:FF", "My ESP32", [], device_filter)


def test_no_prefix_configured_relies_on_service() -> None:
    device_filter = DeviceFilter(service_uuid=SERVICE)
    assert not matches_filter("AA:BB:CC:DD:EE:FF", "ESP32", [], device_filter)


def test_address_filter_overrides_name_and_service() -> None:
    device_filter = DeviceFilter(service_uuid=SERVICE, name_prefix="ESP32", address="aa:bb:cc:dd:ee:ff")
    assert matches_filter("AA:BB:CC:DD:EE:FF", "Other", [], device_filter)
    assert not matches_filter("11:22:33:44:55:66", "ESP32", [SERVICE], device_filter)
