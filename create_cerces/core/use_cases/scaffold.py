"""
Scaffold use case — create a project from a template, end to end.

This is the top-level orchestrator. It walks one request through a
fixed sequence of states::

    COLLECTING_INPUT → VALIDATING_TARGET → FETCHING → SUBSTITUTING
        → [ENSURING_RUNTIME] → [INSTALLING] → [RUNNING_POST_SCRIPTS]
        → REPORTING → DONE

Any fatal ``ScaffoldError`` moves the run to FAILED and skips the
remaining states. Nothing is rolled back: a failed run can leave a
half-populated directory behind. The orchestrator is the only place an
error turns into an exit code.

User-facing output goes through a ``Console``; the CLI supplies one
backed by click, tests supply ``RecordingConsole``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping

from create_cerces.adapters.base import CommandRunner, TemplateFetcher
from create_cerces.core.errors import (
    RuntimeMissing,
    ScaffoldError,
    UnsupportedPackageManager,
    UserAborted,
)
from create_cerces.core.models.command import CommandResult
from create_cerces.core.models.package_manager import PackageManagerProfile
from create_cerces.core.models.request import ScaffoldRequest
from create_cerces.core.models.template import TemplateDescriptor
from create_cerces.core.services.package_manager.resolver import (
    PackageManagerResolver,
    profile_for,
)
from create_cerces.core.services.templates.materializer import (
    TemplateMaterializer,
    check_target_directory,
    prepare_target_directory,
    resolve_parameters,
)
from create_cerces.core.services.templates.registry import descriptor_for

logger = logging.getLogger(__name__)

# Manager used for global runtime installs, whatever invoked us.
GLOBAL_INSTALL_MANAGER = "npm"


class ScaffoldState(str, Enum):
    COLLECTING_INPUT = "collecting_input"
    VALIDATING_TARGET = "validating_target"
    FETCHING = "fetching"
    SUBSTITUTING = "substituting"
    ENSURING_RUNTIME = "ensuring_runtime"
    INSTALLING = "installing"
    RUNNING_POST_SCRIPTS = "running_post_scripts"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


# ═══════════════════════════════════════════════════════════════════
#  Console
# ═══════════════════════════════════════════════════════════════════


class Console(ABC):
    """Where the orchestrator reports progress and asks questions."""

    @abstractmethod
    def step(self, message: str) -> None:
        """A phase is starting."""

    @abstractmethod
    def success(self, message: str) -> None:
        """A phase finished well."""

    @abstractmethod
    def warn(self, message: str) -> None:
        """Something needs the user's attention but the run continues."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Plain guidance text."""

    @abstractmethod
    def confirm(self, question: str, default: bool = True) -> bool:
        """Ask a yes/no question.

        Raises:
            UserAborted: The user interrupted the prompt.
        """


class RecordingConsole(Console):
    """Console that keeps every message and answers questions from a script.

    Args:
        answers: Replies returned by ``confirm`` in order; once exhausted,
            the question's default is used.
    """

    def __init__(self, answers: list[bool] | None = None) -> None:
        self.messages: list[tuple[str, str]] = []
        self.questions: list[str] = []
        self._answers = list(answers or [])

    def step(self, message: str) -> None:
        self.messages.append(("step", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def confirm(self, question: str, default: bool = True) -> bool:
        self.questions.append(question)
        return self._answers.pop(0) if self._answers else default

    def texts(self, kind: str | None = None) -> list[str]:
        """Message texts, optionally filtered by kind."""
        return [m for k, m in self.messages if kind is None or k == kind]


# ═══════════════════════════════════════════════════════════════════
#  Result
# ═══════════════════════════════════════════════════════════════════


@dataclass
class ScaffoldResult:
    """Outcome of one scaffold run."""

    request: ScaffoldRequest | None = None
    state: ScaffoldState = ScaffoldState.COLLECTING_INPUT
    visited: list[ScaffoldState] = field(default_factory=list)
    failed_state: ScaffoldState | None = None
    error: ScaffoldError | None = None
    profile: PackageManagerProfile | None = None
    created_directory: bool = False
    substituted_files: list[Path] = field(default_factory=list)
    commands: list[CommandResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == ScaffoldState.DONE

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict:
        result: dict = {
            "ok": self.ok,
            "state": self.state.value,
            "exit_code": self.exit_code,
        }
        if self.error:
            result["error"] = str(self.error)
            result["failed_state"] = self.failed_state.value if self.failed_state else None
            result["error_type"] = type(self.error).__name__
        if self.request:
            result["directory"] = str(self.request.target_directory)
            result["template"] = self.request.template_key
        if self.profile:
            result["package_manager"] = self.profile.to_dict()
        result["substituted_files"] = [str(p) for p in self.substituted_files]
        result["commands"] = [
            {"command": c.display, "exited_zero": c.exited_zero} for c in self.commands
        ]
        result["warnings"] = list(self.warnings)
        result["next_steps"] = list(self.next_steps)
        return result


# ═══════════════════════════════════════════════════════════════════
#  Request construction
# ═══════════════════════════════════════════════════════════════════


def build_request(
    target_directory: Path | str,
    template_key: str,
    auto_install: bool = False,
    extra_parameters: Mapping[str, str] | None = None,
) -> ScaffoldRequest:
    """Validate user input and build a request.

    Raises:
        UnknownTemplate: ``template_key`` is not registered.
        InvalidTarget: The directory exists and is not empty.
        InvalidParameter: Template parameters are missing or unknown.
    """
    descriptor = descriptor_for(template_key)
    request = ScaffoldRequest(
        target_directory=Path(target_directory),
        template_key=template_key,
        auto_install=auto_install,
        extra_parameters=dict(extra_parameters or {}),
    )
    check_target_directory(request.target_directory)
    resolve_parameters(descriptor, request.extra_parameters)
    return request


# ═══════════════════════════════════════════════════════════════════
#  Orchestrator
# ═══════════════════════════════════════════════════════════════════


class ScaffoldOrchestrator:
    """Runs scaffold requests through the state machine.

    Args:
        runner: Spawns installers, probes and scripts.
        fetcher: Retrieves remote templates.
        resolver: Names the package manager (wrap in ``CachedResolver``
            so probing happens once per run).
        console: Progress output and yes/no prompts.
    """

    def __init__(
        self,
        runner: CommandRunner,
        fetcher: TemplateFetcher,
        resolver: PackageManagerResolver,
        console: Console,
    ) -> None:
        self._runner = runner
        self._resolver = resolver
        self._console = console
        self._materializer = TemplateMaterializer(fetcher, runner=runner, resolver=resolver)

    def run(
        self,
        request: ScaffoldRequest | Callable[[], ScaffoldRequest],
    ) -> ScaffoldResult:
        """Execute one request.

        ``request`` may be a callable, in which case it is invoked in the
        COLLECTING_INPUT state so prompt aborts and early validation
        errors are handled like any other failure.
        """
        result = ScaffoldResult()

        try:
            self._enter(result, ScaffoldState.COLLECTING_INPUT)
            req = request() if callable(request) else request
            result.request = req
            descriptor = descriptor_for(req.template_key)
            self._execute(result, req, descriptor)
        except ScaffoldError as e:
            self._fail(result, e)
        except KeyboardInterrupt:
            self._fail(result, UserAborted())

        return result

    # ── States ──────────────────────────────────────────────────

    def _execute(
        self,
        result: ScaffoldResult,
        req: ScaffoldRequest,
        descriptor: TemplateDescriptor,
    ) -> None:
        target = req.target_directory

        self._enter(result, ScaffoldState.VALIDATING_TARGET)
        if descriptor.delegated:
            # the create command makes the directory itself
            check_target_directory(target)
        else:
            result.created_directory = prepare_target_directory(target)

        self._enter(result, ScaffoldState.FETCHING)
        self._console.step(f"Cloning template `{descriptor.key}` into `{target}`...")
        delegated = self._materializer.fetch(descriptor, target)
        if delegated is not None:
            result.commands.append(delegated)
        self._console.success(f"Template `{descriptor.key}` cloned successfully.")

        self._enter(result, ScaffoldState.SUBSTITUTING)
        result.substituted_files = self._materializer.substitute(
            descriptor, target, req.extra_parameters,
        )

        profile: PackageManagerProfile | None = None
        if req.auto_install:
            if descriptor.requires_runtime:
                self._enter(result, ScaffoldState.ENSURING_RUNTIME)
                self._ensure_runtime(result, descriptor.requires_runtime)

            self._enter(result, ScaffoldState.INSTALLING)
            profile = self._install(result, target)

            if profile is not None and descriptor.post_install_scripts:
                self._enter(result, ScaffoldState.RUNNING_POST_SCRIPTS)
                self._run_post_scripts(result, profile, descriptor, target)

        self._enter(result, ScaffoldState.REPORTING)
        self._report(result, req, descriptor, profile)

        self._enter(result, ScaffoldState.DONE)

    def _ensure_runtime(self, result: ScaffoldResult, runtime: str) -> None:
        if self._runner.command_exists(runtime):
            return

        missing = RuntimeMissing(runtime)
        self._warn(result, str(missing))
        question = f"Install {runtime} globally using {GLOBAL_INSTALL_MANAGER}?"
        if not self._console.confirm(question, default=True):
            self._warn(result, f"Skipping {runtime} installation. You may need to install it manually.")
            return

        npm = profile_for(GLOBAL_INSTALL_MANAGER)
        self._console.step(f"Installing {runtime} globally...")
        outcome = self._exec(result, npm.install_command, npm.global_install_args(runtime))
        if outcome.exited_zero:
            self._console.success(f"{runtime} installed successfully.")
        else:
            self._warn(result, f"Installing {runtime} failed. You may need to install it manually.")

    def _install(self, result: ScaffoldResult, target: Path) -> PackageManagerProfile | None:
        profile = self._resolve_profile(result)
        if profile is None:
            self._warn(result, "Please install dependencies manually, including peer dependencies of cerces.")
            return None

        self._console.step(f"Installing dependencies using {profile.name}...")
        outcome = self._exec(result, profile.install_command, profile.install_args(), cwd=target)
        if outcome.exited_zero:
            self._console.success("Dependencies installed successfully.")
        else:
            self._warn(
                result,
                f"`{outcome.display}` exited with a non-zero status. "
                "Check the output above and install dependencies manually.",
            )
        return profile

    def _run_post_scripts(
        self,
        result: ScaffoldResult,
        profile: PackageManagerProfile,
        descriptor: TemplateDescriptor,
        target: Path,
    ) -> None:
        for script in descriptor.post_install_scripts:
            self._console.step(f"Running `{profile.install_command} run {script}`...")
            outcome = self._exec(
                result, profile.install_command, profile.run_script_args(script), cwd=target,
            )
            if not outcome.exited_zero:
                self._warn(result, f"Script `{script}` failed.")

    def _report(
        self,
        result: ScaffoldResult,
        req: ScaffoldRequest,
        descriptor: TemplateDescriptor,
        profile: PackageManagerProfile | None,
    ) -> None:
        installed = profile is not None
        # binary lookups are reserved for the install step
        if profile is None and result.profile is None and not self._resolver.spawns_processes:
            profile = self._resolve_profile(result, quiet=True)
        pm = profile.install_command if profile else "<package-manager>"

        steps: list[str] = []
        if req.target_directory != Path.cwd().resolve():
            steps.append(f"cd {_display_path(req.target_directory)}")
        if not installed:
            steps.append(f"{pm} install")
        if descriptor.has_dev_server:
            steps.append(f"{pm} run dev")
        result.next_steps = steps

        if descriptor.has_dev_server:
            self._console.success(f"Run `{pm} run dev` to start the development server.")
        else:
            self._warn(result, "This template does not include a development server.")
            self._warn(
                result,
                f"Additional setup may be required specific to the `{descriptor.key}` runtime.",
            )

        follow_up = descriptor.render_follow_up(
            resolve_parameters(descriptor, req.extra_parameters)
        )
        if follow_up:
            self._console.info(follow_up)
            result.next_steps.append(follow_up)

        self._console.success(f'Project created successfully in "{req.target_directory}".')

    # ── Helpers ─────────────────────────────────────────────────

    def _resolve_profile(
        self,
        result: ScaffoldResult,
        quiet: bool = False,
    ) -> PackageManagerProfile | None:
        try:
            profile = self._resolver.resolve()
        except UnsupportedPackageManager as e:
            if not quiet:
                self._warn(result, str(e))
            return None
        result.profile = profile
        return profile

    def _exec(
        self,
        result: ScaffoldResult,
        command: str,
        args: list[str],
        cwd: Path | None = None,
    ) -> CommandResult:
        outcome = self._runner.run(command, args, inherit_output=True, cwd=cwd)
        result.commands.append(outcome)
        return outcome

    def _enter(self, result: ScaffoldResult, state: ScaffoldState) -> None:
        logger.debug("State: %s → %s", result.state.value, state.value)
        result.state = state
        result.visited.append(state)

    def _warn(self, result: ScaffoldResult, message: str) -> None:
        result.warnings.append(message)
        self._console.warn(message)

    def _fail(self, result: ScaffoldResult, error: ScaffoldError) -> None:
        error.phase = result.state.value
        logger.debug("Failed in %s: %s", result.state.value, error, exc_info=error)
        result.error = error
        result.failed_state = result.state
        result.state = ScaffoldState.FAILED
        result.visited.append(ScaffoldState.FAILED)


def _display_path(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)
