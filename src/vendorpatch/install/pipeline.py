"""Sequential installation of a package list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from vendorpatch.core.errors import FetchError, VendorPatchError
from vendorpatch.core.log import logger
from vendorpatch.install.bios import DEFAULT_TOOLS, BiosUpdater
from vendorpatch.install.dispatcher import install_package
from vendorpatch.install.fetch import ArchiveExtractor, Extractor, fetch_file
from vendorpatch.install.flagstore import FlagStore
from vendorpatch.install.process import ProcessRunner
from vendorpatch.model.package import InstallType, Package, PackageFile
from vendorpatch.model.result import PackageInstallResult
from vendorpatch.resolve.locator import ProxySettings, locate


class InstallReport(BaseModel):
    """Results in submission order plus warnings for skipped packages."""

    results: list[PackageInstallResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.warnings and all(r.success for r in self.results)


def prepare_installer(
    pkg: Package,
    download_dir: Path | None,
    proxy: ProxySettings | None = None,
) -> PackageFile:
    """Return the package's installer file with a usable local path.

    Files that already carry a local_path are checked for
    existence; files with only a location are resolved and fetched
    into download_dir/<package id>.

    Raises:
        FetchError: If the installer cannot be found or fetched
    """
    installer = pkg.installer_file
    if installer is None:
        raise FetchError(f"Package {pkg.id} has no installer file")

    if installer.local_path is not None:
        if not Path(installer.local_path).is_file():
            raise FetchError(
                f"Package {pkg.id}: installer {installer.local_path} "
                f"does not exist"
            )
        return installer

    if not installer.location:
        raise FetchError(f"Package {pkg.id}: installer has no location")
    if download_dir is None:
        raise FetchError(f"Package {pkg.id}: no download directory configured")

    locator = locate(installer.location, pkg.base_location, proxy=proxy)
    local_path = fetch_file(
        locator,
        Path(download_dir) / pkg.id,
        checksum=installer.checksum,
        proxy=proxy,
    )
    return installer.model_copy(update={"local_path": local_path})


def install_packages(
    packages: Iterable[Package],
    *,
    runner: ProcessRunner,
    bios_updater: BiosUpdater,
    flag_store: FlagStore,
    extractor: Extractor | None = None,
    download_dir: Path | None = None,
    proxy: ProxySettings | None = None,
    bios_tools: Sequence[str] = DEFAULT_TOOLS,
) -> InstallReport:
    """Install packages one after another.

    A package that cannot be prepared, extracted or dispatched is
    skipped with a warning; the remaining packages still run.

    Returns:
        InstallReport with one result per package that reached an
        installer, in the order the packages were given
    """
    extractor = extractor or ArchiveExtractor()
    report = InstallReport()

    for pkg in packages:
        if pkg.installer.install_type == InstallType.OTHER:
            message = f"Package {pkg.id}: unsupported install type, skipped"
            logger.warn("Unsupported install type, skipping package", package_id=pkg.id)
            report.warnings.append(message)
            continue

        try:
            installer = prepare_installer(pkg, download_dir, proxy)
            workdir = Path(installer.local_path).parent
            extractor.extract(Path(installer.local_path), workdir)
            result = install_package(
                pkg,
                installer,
                workdir,
                runner,
                bios_updater,
                flag_store,
                bios_tools,
            )
        except VendorPatchError as e:
            logger.warn("Skipping package", package_id=pkg.id, reason=str(e))
            report.warnings.append(str(e))
            continue

        report.results.append(result)

    logger.info(
        "Install run complete",
        installed=sum(1 for r in report.results if r.success),
        failed=sum(1 for r in report.results if not r.success),
        skipped=len(report.warnings),
    )
    return report
