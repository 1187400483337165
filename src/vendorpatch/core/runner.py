"""Command execution on top of the invoke library."""

import contextlib
import os
import platform
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from vendorpatch.core.log import logger


class Runner(Context):
    """invoke.Context with an installer-friendly execute() method.

    Output is always captured rather than echoed, stdin is never
    forwarded, and a timeout is reported as exit code -1 with the
    captured output attached instead of an exception.
    """

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's implementation sends signal.SIGKILL, which the
        signal module does not define on Windows. os.kill() on
        Windows passes a numeric value to TerminateProcess() as the
        exit code, so 9 is used there directly.
        """
        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: float | None = None,
        check: bool = False,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a command and return its captured result.

        Args:
            command: Command line to execute through the shell
            cwd: Working directory for the command
            timeout: Maximum execution time in seconds
            check: If True, raise on non-zero exit code
            env: Extra environment variables (merged into os.environ)

        Returns:
            invoke.Result with stdout, stderr and exited. On timeout
            exited is -1 and the result carries timed_out=True.

        Raises:
            invoke.UnexpectedExit: If check=True and the command
                returns non-zero
        """
        kwargs = {
            "hide": True,
            "warn": not check,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.spew("Executing", command=command, cwd=str(cwd or ""))

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1
            result.timed_out = True

        logger.spew("Command finished", command=command, exited=result.exited)
        return result
