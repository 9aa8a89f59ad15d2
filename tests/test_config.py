from __future__ import annotations

from pathlib import Path

from transit.config import (
    DEFAULT_GAS_LIMIT,
    DEFAULT_TIMEOUT_MS,
    TransitConfig,
    merge_payload,
    transit_defaults,
)
from transit.synthesis.model import DEFAULT_PRELUDE, DEFAULT_TRAIT_PATH


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    assert transit_defaults(root=tmp_path) == {}
    config = TransitConfig.from_table(transit_defaults(root=tmp_path))
    assert config == TransitConfig()
    assert config.trait_path == DEFAULT_TRAIT_PATH
    assert config.prelude == DEFAULT_PRELUDE


def test_transit_section_is_read(tmp_path: Path) -> None:
    (tmp_path / "transit.toml").write_text(
        "\n".join(
            [
                "[transit]",
                'construct_name = "Convert"',
                'trait_path = "crate::Convert"',
                'prelude = ["use crate::model::*;"]',
                'header = "generated"',
                "timeout_ms = 500",
                "gas_limit = 1000",
                "",
                "[other]",
                'construct_name = "Ignored"',
            ]
        ),
        encoding="utf-8",
    )
    config = TransitConfig.from_table(transit_defaults(root=tmp_path))
    assert config.construct_name == "Convert"
    assert config.trait_path == "crate::Convert"
    assert config.prelude == ("use crate::model::*;",)
    assert config.header == "generated"
    assert config.timeout_ms == 500
    assert config.gas_limit == 1000
    assert config.emitter().trait_path == "crate::Convert"


def test_invalid_toml_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "custom.toml"
    path.write_text("[transit\nconstruct_name = ", encoding="utf-8")
    assert transit_defaults(config_path=path) == {}


def test_explicit_empty_prelude_disables_it() -> None:
    assert TransitConfig.from_table({"prelude": []}).prelude == ()
    assert TransitConfig.from_table({}).prelude == DEFAULT_PRELUDE


def test_bad_numbers_fall_back() -> None:
    config = TransitConfig.from_table({"timeout_ms": -5, "gas_limit": True})
    assert config.timeout_ms == DEFAULT_TIMEOUT_MS
    assert config.gas_limit == DEFAULT_GAS_LIMIT
    assert TransitConfig.from_table({"timeout_ms": "250"}).timeout_ms == 250


def test_merge_payload_prefers_explicit_values() -> None:
    merged = merge_payload(
        {"construct_name": None, "header": "cli"},
        {"construct_name": "From", "header": "file"},
    )
    assert merged == {"construct_name": "From", "header": "cli"}
