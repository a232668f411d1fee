"""Device profile discovery and validation.

A profile is a YAML document checked against ``profile.schema.json``.
Packaged profiles load first; files under the XDG config and data
directories (``sensorlink/profiles/*.yaml``) replace packaged ones with the
same id.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import string
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from bleak.uuids import normalize_uuid_str
from jsonschema import Draft202012Validator

from sensorlink.core.errors import ProfileLoadError, ProfileValidationError
from sensorlink.core.model import DeviceFilter, GattProfile, ReadingSpec

PROFILE_SUFFIXES = (".yaml", ".yml")
MAX_COMMAND_BYTES = 20
LOGGER = logging.getLogger(__name__)


class ProfileYamlLoader(yaml.SafeLoader):
    """Safe loader that keeps ``on``/``off``/``yes`` as text and rejects repeated keys."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[str] = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            if key_node.value in seen:
                raise ProfileValidationError(
                    f"Duplicate key '{key_node.value}' at line {key_node.start_mark.line + 1}"
                )
            seen.add(key_node.value)
        return super().construct_mapping(node, deep=deep)


ProfileYamlLoader.add_constructor(
    "tag:yaml.org,2002:bool",
    lambda loader, node: loader.construct_scalar(node),
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, GattProfile]
    warnings: tuple[str, ...]


@functools.lru_cache(maxsize=1)
def _schema_validator() -> Draft202012Validator:
    schema_file = resources.files("sensorlink.schemas").joinpath("profile.schema.json")
    schema = json.loads(schema_file.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def user_profile_dirs() -> list[Path]:
    config_home = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    data_home = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local/share")
    return [config_home / "sensorlink" / "profiles", data_home / "sensorlink" / "profiles"]


def _gatt_uuid(value: str, where: str) -> str:
    text = value.strip().lower()
    if len(text) in (4, 8) and all(c in string.hexdigits for c in text):
        return normalize_uuid_str(text)
    try:
        return str(uuid.UUID(text))
    except ValueError:
        raise ProfileValidationError(
            f"{where}: '{value}' is not a 16-bit, 32-bit, or 128-bit UUID"
        ) from None


def parse_profile(text: str, source: str = "<string>") -> GattProfile:
    try:
        doc = yaml.load(text, Loader=ProfileYamlLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {source}: {exc}") from exc

    errors = sorted(_schema_validator().iter_errors(doc), key=lambda e: [str(p) for p in e.path])
    if errors:
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors
        )
        raise ProfileValidationError(f"Profile {source} is invalid: {details}")

    profile_id = doc["id"]
    gatt = doc["gatt"]
    service_uuid = _gatt_uuid(gatt["service_uuid"], f"{profile_id}.gatt.service_uuid")

    for name, token in doc["commands"].items():
        if len(token.encode("utf-8")) > MAX_COMMAND_BYTES:
            raise ProfileValidationError(
                f"{profile_id}.commands.{name}: token longer than {MAX_COMMAND_BYTES} bytes"
            )

    return GattProfile(
        id=profile_id,
        name=doc["name"],
        filter=DeviceFilter(service_uuid=service_uuid, name_prefix=doc["match"].get("name_prefix")),
        service_uuid=service_uuid,
        telemetry_char_uuid=_gatt_uuid(gatt["telemetry_char_uuid"], f"{profile_id}.gatt.telemetry_char_uuid"),
        command_char_uuid=_gatt_uuid(gatt["command_char_uuid"], f"{profile_id}.gatt.command_char_uuid"),
        readings=tuple(
            ReadingSpec(key=key, label=spec["label"], decimals=spec["decimals"], unit=spec.get("unit", ""))
            for key, spec in doc["readings"].items()
        ),
        commands=dict(doc["commands"]),
        scan_timeout_s=float(doc.get("scan_timeout_s", 10.0)),
    )


def _profile_files() -> Iterator[tuple[bool, Path | Traversable]]:
    """Yield ``(is_packaged, file)`` pairs, packaged files first."""
    packaged = resources.files("sensorlink.profiles").iterdir()
    for item in sorted(packaged, key=lambda p: p.name):
        if item.name.endswith(PROFILE_SUFFIXES):
            yield True, item
    for directory in user_profile_dirs():
        if directory.is_dir():
            for path in sorted(directory.iterdir()):
                if path.suffix in PROFILE_SUFFIXES:
                    yield False, path


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, GattProfile] = {}
    packaged_ids: set[str] = set()
    warnings: list[str] = []

    for is_packaged, source in _profile_files():
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise ProfileLoadError(f"Could not read profile file {source}: {exc}") from exc
        profile = parse_profile(text, str(source))

        if is_packaged:
            packaged_ids.add(profile.id)
        elif profile.id in packaged_ids:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
