"""Vendor update package descriptors."""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class FileKind(str, Enum):
    INSTALLER = "Installer"
    OTHER = "Other"


class InstallType(str, Enum):
    """How the vendor wants the package installed.

    Values the vendor feed uses that are not handled here collapse
    to OTHER, which the installer skips.
    """

    CMD = "CMD"
    INF = "INF"
    OTHER = "Other"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return cls.OTHER


class RebootType(IntEnum):
    """Post-install reboot requirement declared by the vendor."""

    NONE = 0
    SUGGESTED = 3
    MANDATORY = 5


class PackageFile(BaseModel):
    """One file belonging to a package.

    location is where the file comes from (absolute path, path
    relative to the package base, or HTTP(S) URL); local_path is
    set once the file has been fetched.
    """

    model_config = ConfigDict(frozen=True)

    kind: FileKind = FileKind.OTHER
    local_path: Path | None = None
    checksum: str = ""
    location: str | None = None


class InstallerSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    install_type: InstallType
    command: str = ""
    success_codes: frozenset[int] = frozenset({0})
    inf_file: str | None = None


class Package(BaseModel):
    """A vendor-described update unit (driver, firmware, BIOS)."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    type: str = ""
    reboot_type: RebootType = RebootType.NONE
    files: tuple[PackageFile, ...] = ()
    installer: InstallerSpec
    base_location: str | None = Field(
        default=None,
        description="Location relative file locations resolve against",
    )

    @property
    def installer_file(self) -> PackageFile | None:
        """First file flagged as the installer, if any."""
        for package_file in self.files:
            if package_file.kind == FileKind.INSTALLER:
                return package_file
        return None


_PACKAGE_LIST = TypeAdapter(list[Package])


def load_manifest(path: Path) -> list[Package]:
    """Load an ordered package list from a YAML manifest.

    The manifest is either a list of packages or a mapping with a
    'packages' key holding that list.

    Raises:
        pydantic.ValidationError: If an entry is malformed
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("packages") or []

    return _PACKAGE_LIST.validate_python(data)
