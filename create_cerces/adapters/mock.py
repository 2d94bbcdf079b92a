"""
Mock adapters — test doubles for the command runner and the fetcher.

Used by ``create-cerces new --mock`` to rehearse a run without
touching the network or spawning processes, and by the test suite to
count calls. Both record every invocation they receive.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from create_cerces.adapters.base import CommandRunner, TemplateFetcher
from create_cerces.core.errors import FetchFailed
from create_cerces.core.models.command import CommandResult

# Written by MockFetcher when no file set is configured.
DEFAULT_MOCK_FILES: dict[str, str] = {
    "package.json": '{\n  "name": "%%DIR_NAME%%",\n  "private": true\n}\n',
    "README.md": "# %%DIR_NAME%%\n",
}


@dataclass
class RecordedCommand:
    """One invocation seen by ``MockCommandRunner``."""

    command: str
    args: list[str]
    inherit_output: bool
    cwd: Path | None

    @property
    def display(self) -> str:
        return " ".join([self.command, *self.args])


class MockCommandRunner(CommandRunner):
    """Command runner that never spawns anything.

    By default every command succeeds. Pass ``available`` to restrict
    success to a fixed set of executables (everything else behaves as
    missing), or mark individual commands with ``set_failure``.
    """

    def __init__(self, available: Iterable[str] | None = None) -> None:
        self._available = set(available) if available is not None else None
        self._failures: set[str] = set()
        self._call_log: list[RecordedCommand] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[RecordedCommand]:
        """All invocations this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_failure(self, command_line: str) -> None:
        """Make an exact command line (``"npm run build"``) or executable fail."""
        self._failures.add(command_line)

    def calls_to(self, command: str) -> list[RecordedCommand]:
        """Invocations of one executable."""
        return [c for c in self._call_log if c.command == command]

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        inherit_output: bool = True,
        cwd: Path | None = None,
    ) -> CommandResult:
        call = RecordedCommand(
            command=command,
            args=list(args),
            inherit_output=inherit_output,
            cwd=cwd,
        )
        self._call_log.append(call)

        ok = True
        if self._available is not None and command not in self._available:
            ok = False
        if command in self._failures or call.display in self._failures:
            ok = False

        return CommandResult(
            exited_zero=ok,
            command=command,
            args=list(args),
            return_code=0 if ok else 1,
        )

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()


class MockFetcher(TemplateFetcher):
    """Fetcher that writes a fixed file set instead of downloading.

    Args:
        files: Relative path → content written on every fetch.
        error: When set, every fetch raises ``FetchFailed`` with this detail.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        error: str | None = None,
    ) -> None:
        self._files = dict(DEFAULT_MOCK_FILES if files is None else files)
        self._error = error
        self._call_log: list[tuple[str, Path]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[tuple[str, Path]]:
        """``(source, destination)`` for every fetch attempt."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def fetch(self, source: str, destination: Path) -> None:
        self._call_log.append((source, destination))
        if self._error:
            raise FetchFailed(source, self._error)

        destination.mkdir(parents=True, exist_ok=True)
        for rel_path, content in self._files.items():
            path = destination / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
