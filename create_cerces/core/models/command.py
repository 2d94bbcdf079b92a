"""
Command result — the only thing a child process reports back.

Output is never captured: installers stream straight to the user's
terminal, and probes discard theirs. Success is the exit status alone.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Outcome of one external command invocation."""

    exited_zero: bool
    command: str = ""
    args: list[str] = Field(default_factory=list)
    return_code: int | None = None   # None when the process never started

    @property
    def ok(self) -> bool:
        """Alias of ``exited_zero``."""
        return self.exited_zero

    @property
    def display(self) -> str:
        """The command line as a user would type it."""
        return " ".join([self.command, *self.args])
