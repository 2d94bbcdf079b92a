"""
Adapter base — the contracts between the scaffolder and the outside world.

Two side effects leave the process: spawning child processes and
fetching remote templates. The core only talks to them through these
interfaces, never directly, so tests can swap in the mocks from
``create_cerces.adapters.mock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from create_cerces.core.models.command import CommandResult


class CommandRunner(ABC):
    """Runs external commands synchronously.

    Implementations MUST block until the child exits and MUST NOT
    raise for a failing or missing command: failures are reported as
    ``exited_zero=False``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'subprocess', 'mock')."""

    @abstractmethod
    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        inherit_output: bool = True,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Execute ``command args...`` and wait for it.

        Args:
            command: Executable name or path.
            args: Arguments passed verbatim.
            inherit_output: Share the caller's stdio when True,
                discard the child's output when False.
            cwd: Working directory for the child (default: current).
        """

    def command_exists(self, command: str) -> bool:
        """Probe for a tool by running ``command --version`` silently."""
        return self.run(command, ["--version"], inherit_output=False).exited_zero

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class TemplateFetcher(ABC):
    """Retrieves a remote template into a local directory."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The fetcher identifier (e.g., 'github', 'mock')."""

    @abstractmethod
    def fetch(self, source: str, destination: Path) -> None:
        """Copy the template at ``source`` into ``destination``.

        Raises:
            FetchFailed: The source could not be retrieved.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
