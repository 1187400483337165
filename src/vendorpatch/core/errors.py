"""Exceptions raised at package-processing boundaries.

Resolution and locator failures are reported as values, not
exceptions. These cover the cases where a package cannot be
handed to an installer at all; the pipeline catches them per
package and carries on with the next one.
"""


class VendorPatchError(Exception):
    """Base class for vendorpatch errors."""


class UnsupportedInstallType(VendorPatchError):
    """Package declares an install type this installer cannot run."""

    def __init__(self, package_id: str, install_type: str):
        self.package_id = package_id
        self.install_type = install_type
        super().__init__(
            f"Package {package_id}: unsupported install type "
            f"'{install_type}'"
        )


class FetchError(VendorPatchError):
    """A package file could not be located or downloaded."""


class ExtractionError(VendorPatchError):
    """A fetched installer archive could not be unpacked."""


class FlagStoreError(VendorPatchError):
    """The update flag store could not be read or written."""


class InvalidPackage(VendorPatchError):
    """Package descriptor is missing what its install type needs."""
