"""Pytest configuration and fixtures for vendorpatch tests."""

import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from vendorpatch.core.log import ConsoleSink, setup_logger
from vendorpatch.install.flagstore import BIOS_UPDATE
from vendorpatch.model.package import (
    FileKind,
    InstallerSpec,
    InstallType,
    Package,
    PackageFile,
    RebootType,
)
from vendorpatch.model.result import (
    ActionNeeded,
    BiosUpdateInfo,
    ExternalProcessResult,
    GenericInfo,
)


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only logging at debug level for the test session."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "vendorpatch-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(scope="session")
def test_config():
    """Load configuration without letting State see pytest's argv."""
    from vendorpatch.core.config import State

    old_argv = sys.argv
    sys.argv = ['vendorpatch']
    try:
        return State().config
    finally:
        sys.argv = old_argv


class FakeRunner:
    """ProcessRunner returning queued results and recording calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def run(self, command, workdir):
        self.calls.append((command, Path(workdir)))
        return self.results.pop(0)


class MemoryFlagStore:
    """FlagStore keeping records in a dict."""

    def __init__(self):
        self.records = {}
        self.writes = 0

    def write(self, record, category=BIOS_UPDATE):
        self.records[category] = record
        self.writes += 1


def generic(exit_code=0, stdout="", stderr=""):
    return ExternalProcessResult(
        info=GenericInfo(
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            runtime=timedelta(seconds=2),
        )
    )


def bios(exit_code=0, action=ActionNeeded.REBOOT, override=None):
    return ExternalProcessResult(
        info=BiosUpdateInfo(
            exit_code=exit_code,
            action_needed=action,
            success_override=override,
            timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
            log_message="flash log",
        )
    )


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def flag_store():
    return MemoryFlagStore()


@pytest.fixture
def process_result():
    """Builders for generic and BIOS-flavored process results."""
    return {"generic": generic, "bios": bios}


@pytest.fixture
def make_package(tmp_path):
    """Build a package whose installer file exists under tmp_path."""

    def _make(
        package_id="pkg1",
        install_type=InstallType.CMD,
        command="setup.exe /s",
        success_codes=(0,),
        reboot_type=RebootType.NONE,
        inf_file=None,
        checksum="abc123",
        installer_name="setup.exe",
    ):
        package_dir = tmp_path / package_id
        package_dir.mkdir(exist_ok=True)
        installer_path = package_dir / installer_name
        installer_path.write_text("installer")
        return Package(
            id=package_id,
            title=f"Package {package_id}",
            type="Driver",
            reboot_type=reboot_type,
            files=(
                PackageFile(kind=FileKind.OTHER, local_path=package_dir / "readme.txt"),
                PackageFile(
                    kind=FileKind.INSTALLER,
                    local_path=installer_path,
                    checksum=checksum,
                ),
            ),
            installer=InstallerSpec(
                install_type=install_type,
                command=command,
                success_codes=frozenset(success_codes),
                inf_file=inf_file,
            ),
        )

    return _make
