from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from transit.analysis.conversion_registry import DEFAULT_CONSTRUCT_NAME
from transit.synthesis.model import DEFAULT_PRELUDE, DEFAULT_TRAIT_PATH, EmitterConfig

DEFAULT_CONFIG_NAME = "transit.toml"
DEFAULT_TIMEOUT_MS = 120_000
DEFAULT_GAS_LIMIT = 50_000_000

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def transit_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get("transit", {})
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str) and item.strip():
                items.append(item.strip())
    return items


def _as_positive_int(value: TomlValue, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int) and value > 0:
        return value
    if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
        return int(value)
    return default


def _as_text(value: TomlValue, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


@dataclass(frozen=True)
class TransitConfig:
    construct_name: str = DEFAULT_CONSTRUCT_NAME
    trait_path: str = DEFAULT_TRAIT_PATH
    prelude: tuple[str, ...] = DEFAULT_PRELUDE
    header: str = ""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    gas_limit: int = DEFAULT_GAS_LIMIT

    @classmethod
    def from_table(cls, table: TomlTable | None) -> "TransitConfig":
        if not isinstance(table, dict):
            return cls()
        prelude: tuple[str, ...] = DEFAULT_PRELUDE
        if "prelude" in table:
            # An explicit empty list disables the prelude.
            prelude = tuple(_normalize_name_list(table.get("prelude")))
        header = table.get("header")
        return cls(
            construct_name=_as_text(table.get("construct_name"), DEFAULT_CONSTRUCT_NAME),
            trait_path=_as_text(table.get("trait_path"), DEFAULT_TRAIT_PATH),
            prelude=prelude,
            header=header if isinstance(header, str) else "",
            timeout_ms=_as_positive_int(table.get("timeout_ms"), DEFAULT_TIMEOUT_MS),
            gas_limit=_as_positive_int(table.get("gas_limit"), DEFAULT_GAS_LIMIT),
        )

    def emitter(self) -> EmitterConfig:
        return EmitterConfig(
            trait_path=self.trait_path,
            prelude=self.prelude,
            header=self.header,
        )
