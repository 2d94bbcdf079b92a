"""
Shell command runner — spawn a child process and wait for it.

The single place where ``subprocess.run`` is called. Output is either
inherited (installers stream to the user in real time) or discarded
(tool probes); it is never captured.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Sequence

from create_cerces.adapters.base import CommandRunner
from create_cerces.core.models.command import CommandResult

logger = logging.getLogger(__name__)


class SubprocessRunner(CommandRunner):
    """Run commands with ``subprocess.run``.

    The executable is resolved through ``shutil.which`` first so that
    ``npm.cmd``-style shims are found on Windows as well.
    """

    @property
    def name(self) -> str:
        return "subprocess"

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        inherit_output: bool = True,
        cwd: Path | None = None,
    ) -> CommandResult:
        argv = [shutil.which(command) or command, *args]
        stream = None if inherit_output else subprocess.DEVNULL

        logger.debug("Executing: %s %s (cwd=%s)", command, " ".join(args), cwd or ".")
        start = time.monotonic()

        try:
            proc = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                stdin=None if inherit_output else subprocess.DEVNULL,
                stdout=stream,
                stderr=stream,
                check=False,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            logger.debug("Could not start %s: %s", command, e)
            return CommandResult(exited_zero=False, command=command, args=list(args))

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s exited %d after %dms", command, proc.returncode, elapsed_ms)

        return CommandResult(
            exited_zero=proc.returncode == 0,
            command=command,
            args=list(args),
            return_code=proc.returncode,
        )
