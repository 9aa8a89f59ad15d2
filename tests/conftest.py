from __future__ import annotations

import sys
import textwrap
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from transit.analysis.timeout_context import Deadline, WorkBudget, deadline_scope, work_budget_scope
from transit.ingest.rust_adapter import RustAdapter


@pytest.fixture(autouse=True)
def _deadline_scope_fixture():
    with deadline_scope(Deadline.from_timeout_ms(120_000)):
        with work_budget_scope(WorkBudget(limit=100_000_000)):
            yield


@pytest.fixture
def rust_unit():
    adapter = RustAdapter()

    def _parse(source: str, name: str = "lib.rs"):
        return adapter.parse_source(textwrap.dedent(source), path=Path(name))

    return _parse


@pytest.fixture
def write_rust(tmp_path: Path):
    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    return _write
