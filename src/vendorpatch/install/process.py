"""Run installer commands and capture their outcome."""

from __future__ import annotations

import platform
import time
from datetime import timedelta
from pathlib import Path
from typing import Protocol

from vendorpatch.core.log import logger
from vendorpatch.core.runner import Runner
from vendorpatch.model.result import ExternalProcessResult, GenericInfo, ProcessError
from vendorpatch.resolve.command import resolve_command

_BATCH_SUFFIXES = (".cmd", ".bat")


class ProcessRunner(Protocol):
    """Executes a command string in a working directory."""

    def run(self, command: str, workdir: Path) -> ExternalProcessResult:
        ...


def build_command_line(executable: Path, arguments: str) -> str:
    """Quote the executable and append the argument tail.

    Batch files cannot be started directly on Windows; they go
    through cmd.exe with AutoRun disabled.
    """
    line = f'"{executable}"'
    if arguments:
        line = f"{line} {arguments}"
    if platform.system() == "Windows" and executable.suffix.lower() in _BATCH_SUFFIXES:
        line = f'cmd.exe /D /C "{line}"'
    return line


class InvokeProcessRunner:
    """ProcessRunner backed by the invoke-based Runner."""

    def __init__(self, timeout: float | None = None, runner: Runner | None = None):
        """Initialize process runner.

        Args:
            timeout: Seconds before an installer is abandoned
                (None waits forever)
            runner: Runner to execute with (a new one if None)
        """
        self.timeout = timeout
        self.runner = runner or Runner()

    def run(self, command: str, workdir: Path) -> ExternalProcessResult:
        resolution = resolve_command(command, workdir)
        if resolution is None:
            logger.warn("Installer executable not found", command=command, workdir=str(workdir))
            return ExternalProcessResult(err=ProcessError.FILE_NOT_FOUND)

        line = build_command_line(resolution.executable, resolution.arguments)
        logger.info("Starting installer", command=line, workdir=str(workdir))

        started = time.monotonic()
        try:
            result = self.runner.execute(line, cwd=workdir, timeout=self.timeout)
        except OSError as e:
            logger.error("Installer could not be started", command=line, error=str(e))
            return ExternalProcessResult(err=ProcessError.LAUNCH_FAILED)
        runtime = timedelta(seconds=time.monotonic() - started)

        if getattr(result, "timed_out", False):
            logger.warn("Installer timed out", command=line, timeout=self.timeout)
            return ExternalProcessResult(err=ProcessError.TIMEOUT)

        logger.info("Installer finished", exit_code=result.exited, runtime=str(runtime))
        return ExternalProcessResult(
            info=GenericInfo(
                exit_code=result.exited,
                stdout=result.stdout,
                stderr=result.stderr,
                runtime=runtime,
            ),
        )
