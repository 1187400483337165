"""Package descriptors and install outcome records."""

from vendorpatch.model.package import (
    FileKind,
    InstallerSpec,
    InstallType,
    Package,
    PackageFile,
    RebootType,
    load_manifest,
)
from vendorpatch.model.result import (
    EXIT_CODE_MISMATCH,
    ActionNeeded,
    BiosUpdateInfo,
    ExternalProcessResult,
    GenericInfo,
    PackageInstallResult,
    PendingAction,
    ProcessError,
)

__all__ = [
    "EXIT_CODE_MISMATCH",
    "ActionNeeded",
    "BiosUpdateInfo",
    "ExternalProcessResult",
    "FileKind",
    "GenericInfo",
    "InstallType",
    "InstallerSpec",
    "Package",
    "PackageFile",
    "PackageInstallResult",
    "PendingAction",
    "ProcessError",
    "RebootType",
    "load_manifest",
]
