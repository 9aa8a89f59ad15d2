from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, TypeVar

from transit.invariants import never


T = TypeVar("T")


class OrderPolicy(str, Enum):
    SORT = "sort"
    ENFORCE = "enforce"


def ordered_or_sorted(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    policy: OrderPolicy = OrderPolicy.SORT,
) -> list[T]:
    """Return values in deterministic order.

    - `OrderPolicy.SORT`: the incoming order carries no meaning; sort it.
    - `OrderPolicy.ENFORCE`: the producer promised sorted output; fail via
      `never()` naming `source` when it did not keep that promise.
    """
    items = list(values)
    if policy is OrderPolicy.SORT:
        return sorted(items, key=key)
    violation = _first_order_violation(items, key=key)
    if violation is not None:
        never(
            "caller-ordered invariant violated",
            source=source,
            previous_index=violation[0],
            current_index=violation[1],
        )
    return items


def sort_once(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
) -> list[T]:
    return ordered_or_sorted(values, source=source, key=key, policy=OrderPolicy.SORT)


def require_ordered(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
) -> list[T]:
    return ordered_or_sorted(values, source=source, key=key, policy=OrderPolicy.ENFORCE)


def _first_order_violation(
    values: list[T],
    *,
    key: Callable[[T], Any] | None = None,
) -> tuple[int, int] | None:
    previous_marker: Any | None = None
    for index, value in enumerate(values):
        marker = key(value) if key is not None else value
        if index and previous_marker > marker:
            return (index - 1, index)
        previous_marker = marker
    return None
