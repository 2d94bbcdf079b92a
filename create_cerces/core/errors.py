"""
Scaffolding errors — one class per failure kind.

Every error carries the orchestrator phase that produced it (filled in
by the orchestrator when it catches the error, not by the raiser).
Only the orchestrator turns an error into a process exit code.

Fatal:
    InvalidTarget, UnknownTemplate, FetchFailed, SubstitutionIOFailure,
    InvalidParameter, UserAborted

Non-fatal (degrade to a warning):
    RuntimeMissing, UnsupportedPackageManager
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for every error raised while scaffolding a project."""

    fatal: bool = True

    def __init__(self, message: str, *, phase: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.phase = phase

    def __str__(self) -> str:
        return self.message


class InvalidTarget(ScaffoldError):
    """The target path exists and is not an empty directory."""

    def __init__(self, path: Path | str, reason: str = "is not empty") -> None:
        super().__init__(f"Directory `{path}` {reason}.")
        self.path = Path(path)


class UnknownTemplate(ScaffoldError):
    """The requested template key is not in the registry."""

    def __init__(self, key: str, known: list[str] | None = None) -> None:
        msg = f"Unknown template '{key}'"
        if known:
            msg += f". Valid: {', '.join(known)}"
        super().__init__(msg)
        self.key = key


class FetchFailed(ScaffoldError):
    """The remote template could not be retrieved."""

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"Failed to fetch template `{source}`: {detail}")
        self.source = source
        self.detail = detail


class SubstitutionIOFailure(ScaffoldError):
    """A substitution file exists but could not be read or written."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Cannot rewrite `{path}`: {detail}")
        self.path = path


class InvalidParameter(ScaffoldError):
    """A template parameter is missing or unusable."""


class UserAborted(ScaffoldError):
    """The user interrupted the run."""

    def __init__(self, message: str = "Aborted by user.") -> None:
        super().__init__(message)


class RuntimeMissing(ScaffoldError):
    """A runtime required by the template is not installed."""

    fatal = False

    def __init__(self, runtime: str) -> None:
        super().__init__(f"{runtime} is not installed but is required for this template.")
        self.runtime = runtime


class UnsupportedPackageManager(ScaffoldError):
    """No supported package manager could be resolved."""

    fatal = False

    def __init__(self, detail: str = "") -> None:
        msg = "Unsupported package manager detected"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg + ".")
