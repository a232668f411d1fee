from __future__ import annotations

from pathlib import Path

import pytest

from sensorlink.core.errors import ProfileValidationError
from sensorlink.core.profile_loader import load_profiles, parse_profile

_VALID = """
id: {id}
name: {name}
match:
  name_prefix: "ESP32"
gatt:
  service_uuid: "{service}"
  telemetry_char_uuid: "6E400003-B5A3-F393-E0A9-E50E24DCCA9E"
  command_char_uuid: "6e400002-b5a3-f393-e0a9-e50e24dcca9e"
readings:
  hum:
    label: Humidity
    decimals: 0
commands:
  on: "1"
  off: "0"
"""


def _write_profile(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_load_packaged_profile() -> None:
    loaded = load_profiles()
    assert "esp32_sensors" in loaded.profiles
    profile = loaded.profiles["esp32_sensors"]
    assert profile.service_uuid == "6e400001-b5a3-f393-e0a9-e50e24dcca9e"
    assert profile.telemetry_char_uuid == "6e400003-b5a3-f393-e0a9-e50e24dcca9e"
    assert profile.command_char_uuid == "6e400002-b5a3-f393-e0a9-e50e24dcca9e"
    assert profile.filter.name_prefix == "ESP32"
    assert profile.filter.service_uuid == profile.service_uuid
    assert profile.commands == {"on": "1", "off": "0"}
    assert [(r.key, r.decimals) for r in profile.readings] == [("airTemp", 2), ("hum", 1), ("waterTemp", 2)]
    assert loaded.warnings == ()


def test_user_profile_override_packaged(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "sensorlink" / "profiles" / "override.yaml",
        _VALID.format(id="esp32_sensors", name="User Override", service="6e400001-b5a3-f393-e0a9-e50e24dcca9e"),
    )

    loaded = load_profiles()
    profile = loaded.profiles["esp32_sensors"]
    assert profile.name == "User Override"
    assert profile.telemetry_char_uuid == "6e400003-b5a3-f393-e0a9-e50e24dcca9e"
    assert [r.key for r in profile.readings] == ["hum"]
    assert any("overrides" in warning for warning in loaded.warnings)


def test_short_uuid_is_expanded(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "data" / "sensorlink" / "profiles" / "short.yml",
        _VALID.format(id="short_uuid", name="Short", service="181a"),
    )

    profile = load_profiles().profiles["short_uuid"]
    assert profile.service_uuid == "0000181a-0000-1000-8000-00805f9b34fb"


def test_invalid_uuid_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "sensorlink" / "profiles" / "bad.yaml",
        _VALID.format(id="bad_uuid", name="Bad", service="not-a-uuid"),
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_missing_required_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "sensorlink" / "profiles" / "missing.yaml",
        """
id: missing
name: Missing
match: {}
gatt:
  service_uuid: "181a"
  telemetry_char_uuid: "2a6e"
  command_char_uuid: "2a6f"
readings: {}
""",
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_duplicate_yaml_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "sensorlink" / "profiles" / "dup.yaml",
        _VALID.format(id="dup", name="Duplicate", service="181a") + '  on: "2"\n',
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_oversized_command_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "sensorlink" / "profiles" / "long.yaml",
        _VALID.format(id="long", name="Long", service="181a") + f'  blink: "{"x" * 32}"\n',
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_boolean_like_command_names_stay_text() -> None:
    text = _VALID.format(id="toggles", name="Toggles", service="181a") + '  yes: "y"\n  no: "n"\n'
    profile = parse_profile(text)
    assert profile.commands == {"on": "1", "off": "0", "yes": "y", "no": "n"}


def test_duplicate_key_reports_line() -> None:
    text = _VALID.format(id="dup", name="Duplicate", service="181a") + '  off: "2"\n'
    with pytest.raises(ProfileValidationError, match=r"Duplicate key 'off' at line \d+"):
        parse_profile(text)


def test_schema_errors_are_all_reported() -> None:
    text = """
id: Bad-Id
name: Broken
match: {}
gatt:
  service_uuid: "181a"
  telemetry_char_uuid: "2a6e"
  command_char_uuid: "2a6f"
readings:
  hum:
    label: Humidity
    decimals: -1
commands:
  on: "1"
"""
    with pytest.raises(ProfileValidationError) as exc:
        parse_profile(text, "broken.yaml")
    message = str(exc.value)
    assert "broken.yaml" in message
    assert "id:" in message
    assert "readings.hum.decimals:" in message
