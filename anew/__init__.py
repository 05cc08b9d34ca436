"""anew - append new lines to a file, skipping ones it already holds."""

from .models import AppendMode, FilterOptions, OrderPolicy
from .runner import RunResult, run_filter

__version__ = "0.1.0"

__all__ = [
    "AppendMode",
    "FilterOptions",
    "OrderPolicy",
    "RunResult",
    "run_filter",
]
