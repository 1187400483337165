"""vendorpatch CLI - resolve and install vendor update packages."""

import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from vendorpatch.command.install import InstallCommand
from vendorpatch.command.locate import LocateCommand
from vendorpatch.command.resolve import ResolveCommand
from vendorpatch.core.config import State
from vendorpatch.core.log import logger


class CliState(State):
    """Resolve, validate and install vendor driver, firmware and
    BIOS update packages.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.process.timeout 600)
    2. Environment variables
       (VENDORPATCH_CONFIG__PROCESS__TIMEOUT=600)
    3. .env file
    4. --include files, ./vendorpatch.yaml, user config directory
    """

    resolve: CliSubCommand[ResolveCommand]
    locate: CliSubCommand[LocateCommand]
    install: CliSubCommand[InstallCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none
        was given."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes file sinks before exit
        with logger:
            exit_code = subcommand.run(self)
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
