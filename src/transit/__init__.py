"""transit package root."""

from transit.exceptions import NeverRaise, NeverThrown, SourceUnitError
from transit.invariants import never

__all__ = ["__version__", "NeverRaise", "NeverThrown", "SourceUnitError", "never"]

__version__ = "0.1.0"
