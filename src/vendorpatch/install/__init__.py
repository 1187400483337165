"""Installer dispatch, process execution and the install pipeline."""

from vendorpatch.install.dispatcher import install_package
from vendorpatch.install.pipeline import InstallReport, install_packages

__all__ = ["InstallReport", "install_package", "install_packages"]
