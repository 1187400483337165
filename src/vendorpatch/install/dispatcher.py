"""Install one package and classify the outcome."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from vendorpatch.core.errors import FlagStoreError, InvalidPackage, UnsupportedInstallType
from vendorpatch.core.log import logger
from vendorpatch.install.bios import DEFAULT_TOOLS, BiosUpdater, match_flash_tool
from vendorpatch.install.flagstore import BIOS_UPDATE, FlagRecord, FlagStore
from vendorpatch.install.process import ProcessRunner
from vendorpatch.model.package import InstallType, Package, PackageFile, RebootType
from vendorpatch.model.result import (
    EXIT_CODE_MISMATCH,
    ActionNeeded,
    ExternalProcessResult,
    PackageInstallResult,
    PendingAction,
    ProcessError,
)

# Typos found in vendor-authored install commands
COMMAND_TYPOS = {
    "-overwirte": "-overwrite",
}

# pnputil reports 3010 when the driver is staged but needs a reboot
INF_REBOOT_CODE = 3010
INF_SUCCESS_CODES = frozenset({0, INF_REBOOT_CODE})

_REBOOT_ACTIONS = {
    RebootType.NONE: PendingAction.NONE,
    RebootType.SUGGESTED: PendingAction.REBOOT_SUGGESTED,
    RebootType.MANDATORY: PendingAction.REBOOT_MANDATORY,
}

_BIOS_ACTIONS = {
    ActionNeeded.NONE: PendingAction.NONE,
    ActionNeeded.SHUTDOWN: PendingAction.SHUTDOWN,
    ActionNeeded.REBOOT: PendingAction.REBOOT_MANDATORY,
}


def fix_command_typos(command: str) -> str:
    for typo, correction in COMMAND_TYPOS.items():
        command = command.replace(typo, correction)
    return command


def inf_command(inf_file: str) -> str:
    return f'pnputil.exe /add-driver "{inf_file}" /install'


def _classify(
    process: ExternalProcessResult,
    success_codes: frozenset[int],
) -> tuple[bool, str]:
    """Return (success, failure_reason) for a finished process."""
    if process.err != ProcessError.NONE:
        return False, process.err.value
    if process.info is None:
        return False, ProcessError.LAUNCH_FAILED.value

    info = process.info
    if info.kind == "bios" and info.success_override is not None:
        success = info.success_override
    else:
        success = info.exit_code in success_codes

    return success, "" if success else EXIT_CODE_MISMATCH


def _result(
    pkg: Package,
    process: ExternalProcessResult,
    success: bool,
    failure_reason: str,
    pending: PendingAction,
) -> PackageInstallResult:
    info = process.info
    fields = {}
    if info is not None:
        fields = {"exit_code": info.exit_code, "runtime": info.runtime}
        if info.kind == "bios":
            fields["log_output"] = info.log_message
        else:
            fields["stdout"] = info.stdout
            fields["stderr"] = info.stderr

    return PackageInstallResult(
        id=pkg.id,
        title=pkg.title,
        type=pkg.type,
        success=success,
        failure_reason=failure_reason,
        pending_action=pending,
        **fields,
    )


def install_cmd(
    pkg: Package,
    installer_file: PackageFile,
    workdir: Path,
    runner: ProcessRunner,
    bios_updater: BiosUpdater,
    flag_store: FlagStore,
    bios_tools: Sequence[str] = DEFAULT_TOOLS,
) -> PackageInstallResult:
    command = pkg.installer.command
    if match_flash_tool(command, bios_tools):
        logger.info("Routing package to BIOS updater", package_id=pkg.id)
        process = bios_updater.run(command, workdir)
    else:
        process = runner.run(fix_command_typos(command), workdir)

    success, reason = _classify(process, pkg.installer.success_codes)
    info = process.info

    if not success:
        pending = PendingAction.NONE
    elif info.kind == "bios":
        pending = _BIOS_ACTIONS[info.action_needed]
    else:
        pending = _REBOOT_ACTIONS[pkg.reboot_type]

    if success and info.kind == "bios":
        try:
            flag_store.write(
                FlagRecord(
                    timestamp=info.timestamp,
                    action_needed=info.action_needed,
                    package_hash=installer_file.checksum,
                ),
                category=BIOS_UPDATE,
            )
        except FlagStoreError as e:
            # Flash already applied; the result is still reported
            logger.warn("BIOS update flag not recorded", package_id=pkg.id, error=str(e))

    return _result(pkg, process, success, reason, pending)


def install_inf(
    pkg: Package,
    workdir: Path,
    runner: ProcessRunner,
) -> PackageInstallResult:
    if not pkg.installer.inf_file:
        raise InvalidPackage(f"Package {pkg.id}: INF install without an inf_file")

    process = runner.run(inf_command(pkg.installer.inf_file), workdir)
    success, reason = _classify(
        process, INF_SUCCESS_CODES | pkg.installer.success_codes
    )

    pending = PendingAction.NONE
    if success and process.info.exit_code == INF_REBOOT_CODE:
        pending = PendingAction.REBOOT_SUGGESTED

    return _result(pkg, process, success, reason, pending)


def install_package(
    pkg: Package,
    installer_file: PackageFile,
    workdir: Path,
    runner: ProcessRunner,
    bios_updater: BiosUpdater,
    flag_store: FlagStore,
    bios_tools: Sequence[str] = DEFAULT_TOOLS,
) -> PackageInstallResult:
    """Run a package's installer and classify the result.

    Args:
        pkg: Package to install
        installer_file: The package's fetched installer file
        workdir: Directory the installer runs in
        runner: Generic process runner
        bios_updater: Runner for recognized BIOS flash tools
        flag_store: Receives the BIOS update flag on success
        bios_tools: Flash tool names routed to bios_updater

    Returns:
        PackageInstallResult for the package

    Raises:
        UnsupportedInstallType: If the install type is neither CMD
            nor INF; nothing was run
        InvalidPackage: If an INF package names no INF file; nothing
            was run
    """
    install_type = pkg.installer.install_type

    with logger.span("Installing package", package_id=pkg.id, install_type=install_type.value):
        if install_type == InstallType.CMD:
            result = install_cmd(
                pkg, installer_file, workdir, runner,
                bios_updater, flag_store, bios_tools,
            )
        elif install_type == InstallType.INF:
            result = install_inf(pkg, workdir, runner)
        else:
            raise UnsupportedInstallType(pkg.id, install_type.value)

        if result.success:
            logger.info(
                "Package installed",
                package_id=pkg.id,
                pending_action=result.pending_action.value,
            )
        else:
            logger.warn(
                "Package install failed",
                package_id=pkg.id,
                failure_reason=result.failure_reason,
                exit_code=result.exit_code,
            )
        return result


__all__ = [
    "COMMAND_TYPOS",
    "INF_SUCCESS_CODES",
    "fix_command_typos",
    "inf_command",
    "install_package",
]

