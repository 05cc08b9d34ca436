"""Data models for anew."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrderPolicy(str, Enum):
    """Line order used whenever the target file is rewritten."""
    FIRST_SEEN = "first-seen"   # file order, then stdin arrival order
    SORTED = "sorted"           # lexicographic


class AppendMode(str, Enum):
    """When new lines reach the target file."""
    BATCH = "batch"             # once, after stdin is exhausted
    IMMEDIATE = "immediate"     # as soon as each line is accepted


class FilterOptions(BaseModel):
    """Flags for one filter run."""

    model_config = ConfigDict(extra="forbid")

    quiet: bool = Field(default=False, description="Do not echo new lines to stdout")
    dry_run: bool = Field(default=False, description="Never modify the target file")
    trim: bool = Field(default=False, description="Strip surrounding whitespace before comparison")
    rewrite: bool = Field(default=False, description="Rewrite the target file without duplicates")
    max_lines: int = Field(default=-1, description="Stop after this many new lines (<= 0: unlimited)")

    order: OrderPolicy = Field(default=OrderPolicy.FIRST_SEEN)
    append_mode: AppendMode = Field(default=AppendMode.BATCH)
    restore_mtime: bool = Field(
        default=True,
        description="Reset the target file's mtime to its value before the run",
    )

    @property
    def limited(self) -> bool:
        return self.max_lines > 0

    def limit_reached(self, count: int) -> bool:
        """True once `count` new lines exhaust the configured limit."""
        return self.limited and count >= self.max_lines
