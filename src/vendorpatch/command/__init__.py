"""CLI command modules for vendorpatch."""

from vendorpatch.command.install import InstallCommand
from vendorpatch.command.locate import LocateCommand
from vendorpatch.command.resolve import ResolveCommand

__all__ = ["InstallCommand", "LocateCommand", "ResolveCommand"]
