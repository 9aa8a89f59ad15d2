"""Exception types raised by transit."""

from __future__ import annotations

from pathlib import Path


class NeverRaise(RuntimeError):
    """Sentinel exception that should be statically unreachable.

    Raising this exception signals that an internal invariant of the analysis
    was violated. Well-formed input never reaches it.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""


class SourceUnitError(RuntimeError):
    """A source unit could not be read or parsed.

    This aborts the whole pass: a partial graph changes which pairs are
    ambiguous and which are unique.
    """

    def __init__(self, path: Path | str, stage: str, detail: str):
        super().__init__(f"{path}: {stage}: {detail}")
        self.path = Path(path)
        self.stage = stage
        self.detail = detail
