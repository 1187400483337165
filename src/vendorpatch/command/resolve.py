"""Resolve command - show which executable a command string runs."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from vendorpatch.core.log import logger
from vendorpatch.resolve.command import resolve_command


class ResolveCommand(BaseModel):
    """Split an install command into executable and arguments.

    Searches the working directory and the machine PATH the same
    way the installer does before running a package.
    """

    command: CliPositionalArg[str] = Field(
        description="Install command, quoted as one argument"
    )
    workdir: Path = Field(
        default_factory=Path.cwd,
        description="Directory relative executables are resolved against",
    )

    def run(self, state: "State") -> int:  # noqa: F821, ARG002
        """Print the resolution.

        Returns:
            Exit code (0=resolved, 1=no executable found)
        """
        resolution = resolve_command(self.command, self.workdir)
        if resolution is None:
            logger.error("No executable found", command=self.command)
            return 1

        print(resolution.model_dump_json(indent=2))
        return 0
