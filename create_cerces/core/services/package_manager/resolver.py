"""
Package manager resolver — pick the manager and derive its commands.

Two strategies behind one interface:

    EnvironmentResolver   (primary) — trusts the invocation hint
                          (``npm_config_user_agent``) or the explicit
                          override variables; falls back to npm.
    BinaryProbeResolver   (fallback) — runs ``<pm> --version`` for bun,
                          pnpm, npm in that order; raises
                          ``UnsupportedPackageManager`` when none answer.

Both map the chosen ``{name, version}`` through ``profile_for``, the
version-gated command table. Version gates use strict "greater than":
a version equal to the boundary takes the legacy branch, and
prereleases order below their release (``6.0.1-rc.1 > 6.0.0``,
``6.0.0-rc.1 < 6.0.0``).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Mapping, Sequence

import semver

from create_cerces.adapters.base import CommandRunner
from create_cerces.core.errors import UnsupportedPackageManager
from create_cerces.core.models.package_manager import (
    SUPPORTED_MANAGERS,
    PackageManagerHint,
    PackageManagerProfile,
)
from create_cerces.core.services.package_manager.detection import (
    HintProvider,
    environment_hint_provider,
    override_hint,
)

logger = logging.getLogger(__name__)

DEFAULT_HINT = PackageManagerHint(name="npm", version="0.0.0")

# pnpm 7 renamed `pnpx` to `pnpm dlx`; yarn berry introduced `yarn dlx`.
PNPM_DLX_SINCE = semver.Version(6, 0, 0)
YARN_DLX_SINCE = semver.Version(2, 0, 0)
_UNKNOWN_VERSION = semver.Version(0, 0, 0)

# Probe order for BinaryProbeResolver.
PROBE_ORDER: tuple[str, ...] = ("bun", "pnpm", "npm")

STRATEGIES: tuple[str, ...] = ("env", "probe")


def _parse_version(version: str) -> semver.Version:
    """Semver parse; a missing minor or patch counts as 0."""
    try:
        return semver.Version.parse(version.strip().lstrip("v"), optional_minor_and_patch=True)
    except (ValueError, TypeError):
        logger.debug("Unparseable package manager version %r, treating as 0.0.0", version)
        return _UNKNOWN_VERSION


def profile_for(name: str, version: str = "0.0.0") -> PackageManagerProfile:
    """Map a manager name and version to its command table.

    Unrecognized names get the npm profile.
    """
    name = name.lower()
    parsed = _parse_version(version)

    if name == "pnpm":
        if parsed > PNPM_DLX_SINCE:
            return PackageManagerProfile(
                name="pnpm", version=version,
                install_command="pnpm", exec_command="pnpm",
                dlx_command=("pnpm", "dlx"),
            )
        return PackageManagerProfile(
            name="pnpm", version=version,
            install_command="pnpm", exec_command="pnpx",
            dlx_command=("pnpx",),
        )

    if name == "yarn":
        if parsed > YARN_DLX_SINCE:
            return PackageManagerProfile(
                name="yarn", version=version,
                install_command="yarn", exec_command="yarn",
                dlx_command=("yarn", "dlx"),
            )
        return PackageManagerProfile(
            name="yarn", version=version,
            install_command="yarn", exec_command="yarn",
            dlx_command=("yarn",),
        )

    if name == "bun":
        return PackageManagerProfile(
            name="bun", version=version,
            install_command="bun", exec_command="bunx",
            dlx_command=("bunx",),
        )

    if name not in SUPPORTED_MANAGERS:
        logger.info("Unsupported package manager '%s', falling back to npm", name)
    return PackageManagerProfile(
        name="npm", version=version,
        install_command="npm", exec_command="npx",
        dlx_command=("npx",),
    )


# ═══════════════════════════════════════════════════════════════════
#  Strategies
# ═══════════════════════════════════════════════════════════════════


class PackageManagerResolver(ABC):
    """Decides which package manager to use for this run."""

    @property
    @abstractmethod
    def strategy(self) -> str:
        """Strategy identifier ('env' or 'probe')."""

    @abstractmethod
    def resolve(self) -> PackageManagerProfile:
        """Return the profile for the resolved manager.

        Raises:
            UnsupportedPackageManager: No supported manager could be named.
        """

    @property
    def spawns_processes(self) -> bool:
        """Whether the next ``resolve`` call may run external commands."""
        return False


class EnvironmentResolver(PackageManagerResolver):
    """Resolve from the invocation hint, with override variables on top.

    Args:
        hint_provider: Callable returning the detected hint or None.
            Defaults to parsing ``npm_config_user_agent``.
        environ: Environment mapping used for the override variables
            (and for the default hint provider). Defaults to ``os.environ``.
    """

    def __init__(
        self,
        hint_provider: HintProvider | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._environ = environ
        self._hint_provider = hint_provider or environment_hint_provider(environ)

    @property
    def strategy(self) -> str:
        return "env"

    def detect_hint(self) -> PackageManagerHint:
        """The ``{name, version}`` pair the profile will be built from."""
        hint = override_hint(self._environ)
        if hint is not None:
            logger.debug("Package manager override: %s@%s", hint.name, hint.version)
            return hint
        hint = self._hint_provider()
        if hint is not None:
            logger.debug("Package manager hint: %s@%s", hint.name, hint.version)
            return hint
        logger.debug("No package manager hint, defaulting to npm")
        return DEFAULT_HINT

    def resolve(self) -> PackageManagerProfile:
        hint = self.detect_hint()
        return profile_for(hint.name, hint.version)


class BinaryProbeResolver(PackageManagerResolver):
    """Resolve by probing for manager binaries on PATH.

    The probe only sees exit status, so the resulting profile carries
    version ``0.0.0``.
    """

    def __init__(self, runner: CommandRunner, order: Sequence[str] = PROBE_ORDER) -> None:
        self._runner = runner
        self._order = tuple(order)

    @property
    def strategy(self) -> str:
        return "probe"

    @property
    def spawns_processes(self) -> bool:
        return True

    def resolve(self) -> PackageManagerProfile:
        for candidate in self._order:
            if self._runner.command_exists(candidate):
                logger.debug("Probe found %s", candidate)
                return profile_for(candidate)
        raise UnsupportedPackageManager(f"none of {', '.join(self._order)} found")


class CachedResolver(PackageManagerResolver):
    """Resolve once, then replay the outcome (profile or error)."""

    def __init__(self, inner: PackageManagerResolver) -> None:
        self._inner = inner
        self._profile: PackageManagerProfile | None = None
        self._error: UnsupportedPackageManager | None = None
        self._resolved = False

    @property
    def strategy(self) -> str:
        return self._inner.strategy

    @property
    def spawns_processes(self) -> bool:
        return not self._resolved and self._inner.spawns_processes

    def resolve(self) -> PackageManagerProfile:
        if not self._resolved:
            try:
                self._profile = self._inner.resolve()
            except UnsupportedPackageManager as e:
                self._error = e
            self._resolved = True

        if self._error is not None:
            raise self._error
        assert self._profile is not None
        return self._profile


def create_resolver(
    strategy: str,
    runner: CommandRunner,
    environ: Mapping[str, str] | None = None,
) -> PackageManagerResolver:
    """Build a cached resolver for the named strategy.

    Raises:
        ValueError: Unknown strategy name.
    """
    if strategy == "env":
        inner: PackageManagerResolver = EnvironmentResolver(environ=environ)
    elif strategy == "probe":
        inner = BinaryProbeResolver(runner)
    else:
        raise ValueError(f"Unknown resolver strategy '{strategy}'. Valid: {', '.join(STRATEGIES)}")
    return CachedResolver(inner)
