from __future__ import annotations

import pytest

from transit.analysis import timeout_context
from transit.analysis.timeout_context import (
    STAGE_CLOSURE,
    BudgetExhausted,
    Deadline,
    TimeoutExceeded,
    WorkBudget,
    check_deadline,
    deadline_scope,
    stage_scope,
    work_budget_scope,
)
from transit.exceptions import NeverThrown


def test_work_budget_tracks_spend_per_stage() -> None:
    budget = WorkBudget(limit=4)
    budget.charge("catalog")
    budget.charge("closure", 2)
    assert budget.spent == {"catalog": 1, "closure": 2}
    with pytest.raises(BudgetExhausted) as excinfo:
        budget.charge("closure")
    assert excinfo.value.stage == "closure"
    assert budget.get_mark() == 4


def test_work_budget_rejects_invalid_values() -> None:
    with pytest.raises(NeverThrown):
        WorkBudget(limit=0)
    with pytest.raises(NeverThrown):
        WorkBudget(limit=5).charge("closure", 0)


def test_exhausted_budget_names_stage_and_site() -> None:
    with work_budget_scope(WorkBudget(limit=1)), stage_scope(STAGE_CLOSURE):
        with pytest.raises(TimeoutExceeded) as excinfo:
            check_deadline()
    context = excinfo.value.context
    assert context.stage == STAGE_CLOSURE
    assert "test_exhausted_budget_names_stage_and_site" in context.site
    assert "in closure" in str(excinfo.value)


def test_expired_deadline_raises() -> None:
    with deadline_scope(Deadline.from_timeout_ms(0)):
        with pytest.raises(TimeoutExceeded):
            check_deadline()


def test_missing_carrier_is_an_invariant_violation() -> None:
    token = timeout_context._deadline_var.set(None)
    try:
        with pytest.raises(NeverThrown):
            check_deadline()
    finally:
        timeout_context._deadline_var.reset(token)
