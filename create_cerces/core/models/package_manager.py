"""
Package manager models — who invoked us, and how to talk to it.

A ``PackageManagerHint`` is the raw ``{name, version}`` pair read from
the environment. A ``PackageManagerProfile`` is the resolved command
table for that manager; it also knows how to spell the subordinate
invocations (install, run script, global install, delegated create).
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

PackageManagerName = Literal["npm", "pnpm", "yarn", "bun"]

SUPPORTED_MANAGERS: tuple[str, ...] = ("npm", "pnpm", "yarn", "bun")


class PackageManagerHint(BaseModel):
    """Raw invocation hint: which manager launched this process."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = "0.0.0"


class PackageManagerProfile(BaseModel):
    """Resolved command table for one package manager."""

    model_config = ConfigDict(frozen=True)

    name: PackageManagerName
    version: str = "0.0.0"
    install_command: str
    exec_command: str
    dlx_command: tuple[str, ...]

    # ── Subordinate invocations ─────────────────────────────────

    def install_args(self) -> list[str]:
        """Dependency install, e.g. ``pnpm install --config.auto-install-peers=true``."""
        if self.name == "pnpm":
            # templates declare peer dependencies; pnpm skips them otherwise
            return ["install", "--config.auto-install-peers=true"]
        return ["install"]

    def run_script_args(self, script: str) -> list[str]:
        """``<manager> run <script>``."""
        return ["run", script]

    def global_install_args(self, package: str) -> list[str]:
        """``<manager> install -g <package>``."""
        return ["install", "-g", package]

    def create_args(self, package: str, locator: str, directory: str) -> list[str]:
        """Arguments for ``<exec> create <package> ...`` (delegated scaffolding)."""
        return [
            "create", package,
            "--template", locator,
            "--lang", "ts",
            "--deploy", "false",
            "--git", "true",
            directory,
        ]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "install_command": self.install_command,
            "exec_command": self.exec_command,
            "dlx_command": list(self.dlx_command),
        }
