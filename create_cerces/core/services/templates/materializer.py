"""
Template materializer — fetch a template and parameterize it.

Two passes after the fetch, both plain global literal replacement:

    1. ``%%DIR_NAME%%`` → target directory basename, in every file
       listed in ``descriptor.substitution_files``.
    2. For each template parameter: its token → the user's value, in
       every file the parameter lists.

Files are rewritten one at a time and only when their content
changes, so a file without the token is never touched and running the
substitution twice is a no-op.

Delegated templates skip the fetch: the package manager's ``create``
command builds the directory, and the directory existing afterwards is
the only success signal.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

from create_cerces.adapters.base import CommandRunner, TemplateFetcher
from create_cerces.core.errors import (
    FetchFailed,
    InvalidParameter,
    InvalidTarget,
    SubstitutionIOFailure,
    UnsupportedPackageManager,
)
from create_cerces.core.models.command import CommandResult
from create_cerces.core.models.template import DIR_NAME_TOKEN, TemplateDescriptor
from create_cerces.core.services.package_manager.resolver import PackageManagerResolver

logger = logging.getLogger(__name__)

# Parameter values land inside JSON strings and shell commands.
_SAFE_VALUE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


# ═══════════════════════════════════════════════════════════════════
#  Target directory
# ═══════════════════════════════════════════════════════════════════


def check_target_directory(path: Path) -> None:
    """Fail unless ``path`` is absent or an empty directory.

    Raises:
        InvalidTarget: ``path`` is a file, or a directory with entries.
    """
    if not path.exists():
        return
    if not path.is_dir():
        raise InvalidTarget(path, "is not a directory")
    if any(path.iterdir()):
        raise InvalidTarget(path)


def prepare_target_directory(path: Path) -> bool:
    """Validate ``path`` and create it if missing.

    Returns:
        True if the directory was created.

    Raises:
        InvalidTarget: ``path`` is unusable or cannot be created.
    """
    check_target_directory(path)
    if path.exists():
        return False
    try:
        path.mkdir(parents=True)
    except OSError as e:
        raise InvalidTarget(path, f"cannot be created: {e}") from e
    logger.debug("Created %s", path)
    return True


# ═══════════════════════════════════════════════════════════════════
#  Substitution
# ═══════════════════════════════════════════════════════════════════


def substitute_placeholder(path: Path, token: str, value: str) -> bool:
    """Replace every ``token`` in ``path`` with ``value``.

    Returns:
        True if the file was rewritten, False if it was missing or
        contained no token.

    Raises:
        SubstitutionIOFailure: The file exists but cannot be read or written.
    """
    if not path.is_file():
        return False

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SubstitutionIOFailure(path, str(e)) from e

    if token not in content:
        return False

    try:
        path.write_text(content.replace(token, value), encoding="utf-8")
    except OSError as e:
        raise SubstitutionIOFailure(path, str(e)) from e

    logger.debug("Substituted %s in %s", token, path)
    return True


def resolve_parameters(
    descriptor: TemplateDescriptor,
    values: Mapping[str, str] | None,
) -> dict[str, str]:
    """Check supplied values against the template's parameters.

    Falls back to each parameter's default when no value is given.

    Raises:
        InvalidParameter: Unknown name, missing value, multi-line value, or
            characters outside letters, digits and ``._-``.
    """
    values = dict(values or {})
    unknown = sorted(set(values) - {p.name for p in descriptor.parameters})
    if unknown:
        raise InvalidParameter(
            f"Template '{descriptor.key}' has no parameter(s): {', '.join(unknown)}"
        )

    resolved: dict[str, str] = {}
    for param in descriptor.parameters:
        value = values.get(param.name, param.default)
        if value is None or not value.strip():
            raise InvalidParameter(
                f"Template '{descriptor.key}' requires a value for '{param.name}'"
            )
        if "\n" in value or "\r" in value:
            raise InvalidParameter(f"Parameter '{param.name}' must be a single line")
        value = value.strip()
        if not _SAFE_VALUE.fullmatch(value):
            raise InvalidParameter(
                f"Parameter '{param.name}' may only contain letters, digits, '.', '_' and '-'"
            )
        resolved[param.name] = value
    return resolved


# ═══════════════════════════════════════════════════════════════════
#  Materializer
# ═══════════════════════════════════════════════════════════════════


class TemplateMaterializer:
    """Turn a template descriptor into files on disk.

    Args:
        fetcher: Retrieves remote templates.
        runner: Runs the delegated ``create`` command (delegated templates only).
        resolver: Names the package manager for delegated templates.
    """

    def __init__(
        self,
        fetcher: TemplateFetcher,
        runner: CommandRunner | None = None,
        resolver: PackageManagerResolver | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._runner = runner
        self._resolver = resolver

    def materialize(
        self,
        descriptor: TemplateDescriptor,
        target_directory: Path,
        parameters: Mapping[str, str] | None = None,
    ) -> list[Path]:
        """Fetch, then substitute. Returns the files that were rewritten."""
        self.fetch(descriptor, target_directory)
        return self.substitute(descriptor, target_directory, parameters)

    def fetch(
        self,
        descriptor: TemplateDescriptor,
        target_directory: Path,
    ) -> CommandResult | None:
        """Retrieve the template into ``target_directory``.

        Returns:
            The delegated ``create`` command's result, or None for a plain fetch.

        Raises:
            FetchFailed: Retrieval failed, or the directory is missing afterwards.
        """
        outcome = None
        if descriptor.delegated:
            outcome = self._delegate_create(descriptor, target_directory)
        else:
            self._fetcher.fetch(descriptor.remote_source, target_directory)

        if not target_directory.is_dir():
            raise FetchFailed(
                descriptor.remote_source,
                f"directory `{target_directory}` was not created",
            )
        return outcome

    def substitute(
        self,
        descriptor: TemplateDescriptor,
        target_directory: Path,
        parameters: Mapping[str, str] | None = None,
    ) -> list[Path]:
        """Run both substitution passes. Returns the rewritten files."""
        values = resolve_parameters(descriptor, parameters)
        changed: list[Path] = []

        for rel in descriptor.substitution_files:
            path = target_directory / rel
            if substitute_placeholder(path, DIR_NAME_TOKEN, target_directory.name):
                changed.append(path)

        for param in descriptor.parameters:
            for rel in param.files:
                path = target_directory / rel
                if substitute_placeholder(path, param.token, values[param.name]):
                    if path not in changed:
                        changed.append(path)

        return changed

    # ── Helpers ─────────────────────────────────────────────────

    def _delegate_create(
        self,
        descriptor: TemplateDescriptor,
        target_directory: Path,
    ) -> CommandResult:
        if self._runner is None or self._resolver is None:
            raise FetchFailed(descriptor.remote_source, "delegated templates need a command runner")

        try:
            profile = self._resolver.resolve()
        except UnsupportedPackageManager as e:
            raise FetchFailed(descriptor.remote_source, str(e)) from e

        assert descriptor.delegate_package is not None
        args = profile.create_args(
            descriptor.delegate_package,
            descriptor.remote_source,
            str(target_directory),
        )
        logger.info("Delegating to %s %s", profile.exec_command, " ".join(args))
        return self._runner.run(profile.exec_command, args, inherit_output=True)
