"""Wall-clock deadline and logical work budget for one analysis pass.

Bounded loops call `check_deadline()` once per unit of work: a loaded file, a
scanned declaration, a dequeued closure pair, a rendered conversion. The tick
is charged to the active stage of the work budget, then the wall clock is
compared against the pass deadline. Either limit raises `TimeoutExceeded`,
naming the stage and the calling site.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
import time
from typing import Callable, Dict, Iterator

from transit.invariants import never

STAGE_LOAD = "load"
STAGE_CATALOG = "catalog"
STAGE_REGISTRY = "registry"
STAGE_CLOSURE = "closure"
STAGE_EMISSION = "emission"
STAGE_UNSCOPED = "unscoped"


class BudgetExhausted(RuntimeError):
    def __init__(self, stage: str, spent: int, limit: int) -> None:
        super().__init__(f"work budget exhausted in {stage}: {spent}/{limit}")
        self.stage = stage
        self.spent = spent
        self.limit = limit


@dataclass
class WorkBudget:
    """Deterministic tick budget shared by every stage of a pass.

    `spent` keeps the per-stage totals so an exhausted budget can say where
    the work went.
    """

    limit: int
    spent: Dict[str, int] = field(default_factory=dict)
    total: int = 0

    def __post_init__(self) -> None:
        if int(self.limit) <= 0:
            never("invalid work budget", limit=self.limit)
        self.limit = int(self.limit)

    def charge(self, stage: str, ticks: int = 1) -> None:
        ticks_value = int(ticks)
        if ticks_value <= 0:
            never("invalid work ticks", ticks=ticks, stage=stage)
        self.spent[stage] = self.spent.get(stage, 0) + ticks_value
        self.total += ticks_value
        if self.total >= self.limit:
            raise BudgetExhausted(stage, self.total, self.limit)

    def get_mark(self) -> int:
        return self.total


@dataclass(frozen=True)
class TimeoutContext:
    stage: str
    site: str
    spent: int


class TimeoutExceeded(TimeoutError):
    def __init__(self, context: TimeoutContext) -> None:
        super().__init__(f"Analysis timed out in {context.stage} at {context.site}.")
        self.context = context


@dataclass(frozen=True)
class Deadline:
    deadline_ns: int

    @classmethod
    def from_timeout_ms(cls, milliseconds: int) -> "Deadline":
        if int(milliseconds) < 0:
            never("invalid timeout", milliseconds=milliseconds)
        return cls(deadline_ns=time.monotonic_ns() + int(milliseconds) * 1_000_000)

    def expired(self) -> bool:
        return time.monotonic_ns() >= self.deadline_ns

    def check(self, builder: Callable[[], TimeoutContext]) -> None:
        if self.expired():
            raise TimeoutExceeded(builder())


_deadline_var: ContextVar[Deadline | None] = ContextVar("transit_deadline", default=None)
_work_budget_var: ContextVar[WorkBudget | None] = ContextVar("transit_work_budget", default=None)
_stage_var: ContextVar[str] = ContextVar("transit_stage", default=STAGE_UNSCOPED)


def get_deadline() -> Deadline:
    deadline = _deadline_var.get()
    if deadline is None:
        never("deadline carrier missing")
    return deadline


def get_work_budget() -> WorkBudget:
    budget = _work_budget_var.get()
    if budget is None:
        never("work budget missing")
    return budget


def current_stage() -> str:
    return _stage_var.get()


@contextmanager
def deadline_scope(deadline: Deadline) -> Iterator[None]:
    token = _deadline_var.set(deadline)
    try:
        yield
    finally:
        _deadline_var.reset(token)


@contextmanager
def work_budget_scope(budget: WorkBudget) -> Iterator[None]:
    token = _work_budget_var.set(budget)
    try:
        yield
    finally:
        _work_budget_var.reset(token)


@contextmanager
def stage_scope(stage: str) -> Iterator[None]:
    token = _stage_var.set(stage)
    try:
        yield
    finally:
        _stage_var.reset(token)


def _frame_site(frame) -> str:
    code = frame.f_code
    return f"{code.co_filename.rsplit('/', 1)[-1]}:{code.co_name}:{frame.f_lineno}"


def check_deadline(ticks: int = 1) -> None:
    deadline = get_deadline()
    budget = get_work_budget()
    stage = current_stage()
    caller = sys._getframe(1)

    def _context() -> TimeoutContext:
        return TimeoutContext(stage=stage, site=_frame_site(caller), spent=budget.get_mark())

    try:
        budget.charge(stage, ticks)
    except BudgetExhausted as exc:
        raise TimeoutExceeded(_context()) from exc
    deadline.check(_context)
