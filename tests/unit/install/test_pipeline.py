"""Tests for installing a list of packages."""

import httpx

from vendorpatch.core.errors import ExtractionError
from vendorpatch.install import pipeline
from vendorpatch.install.flagstore import YamlFlagStore
from vendorpatch.install.pipeline import install_packages, prepare_installer
from vendorpatch.model.package import (
    FileKind,
    InstallerSpec,
    InstallType,
    Package,
    PackageFile,
)
from vendorpatch.model.result import EXIT_CODE_MISMATCH


class FailingExtractor:
    def __init__(self, failing_ids):
        self.failing_ids = set(failing_ids)
        self.calls = []

    def extract(self, archive, destination):
        self.calls.append(archive)
        if archive.parent.name in self.failing_ids:
            raise ExtractionError(f"Could not extract {archive.name}")


def test_results_keep_submission_order(make_package, fake_runner, flag_store, process_result):
    packages = [make_package("a"), make_package("b"), make_package("c")]
    g = process_result["generic"]
    runner = fake_runner(g(0), g(1), g(0))

    report = install_packages(
        packages, runner=runner, bios_updater=fake_runner(), flag_store=flag_store
    )

    assert [r.id for r in report.results] == ["a", "b", "c"]
    assert [r.success for r in report.results] == [True, False, True]
    assert report.results[1].failure_reason == EXIT_CODE_MISMATCH
    assert report.warnings == []
    assert report.all_succeeded is False


def test_unsupported_package_skipped(make_package, fake_runner, flag_store, process_result):
    packages = [
        make_package("skip", install_type=InstallType.OTHER),
        make_package("next"),
    ]
    runner = fake_runner(process_result["generic"](0))

    report = install_packages(
        packages, runner=runner, bios_updater=fake_runner(), flag_store=flag_store
    )

    assert [r.id for r in report.results] == ["next"]
    assert len(runner.calls) == 1
    assert len(report.warnings) == 1
    assert "skip" in report.warnings[0]


def test_missing_installer_file_is_warning(fake_runner, flag_store, tmp_path):
    pkg = Package(
        id="ghost",
        files=(PackageFile(kind=FileKind.INSTALLER, local_path=tmp_path / "gone.exe"),),
        installer=InstallerSpec(install_type=InstallType.CMD, command="gone.exe"),
    )
    runner = fake_runner()

    report = install_packages(
        [pkg], runner=runner, bios_updater=fake_runner(), flag_store=flag_store
    )

    assert report.results == []
    assert runner.calls == []
    assert "does not exist" in report.warnings[0]


def test_package_without_installer_is_warning(fake_runner, flag_store):
    pkg = Package(
        id="empty",
        installer=InstallerSpec(install_type=InstallType.CMD, command="x.exe"),
    )

    report = install_packages(
        [pkg], runner=fake_runner(), bios_updater=fake_runner(), flag_store=flag_store
    )

    assert report.results == []
    assert "no installer file" in report.warnings[0]


def test_extraction_failure_skips_only_that_package(
    make_package, fake_runner, flag_store, process_result
):
    packages = [make_package("broken"), make_package("fine")]
    runner = fake_runner(process_result["generic"](0))
    extractor = FailingExtractor({"broken"})

    report = install_packages(
        packages,
        runner=runner,
        bios_updater=fake_runner(),
        flag_store=flag_store,
        extractor=extractor,
    )

    assert len(extractor.calls) == 2
    assert [r.id for r in report.results] == ["fine"]
    assert report.warnings == ["Could not extract setup.exe"]


def test_all_succeeded(make_package, fake_runner, flag_store, process_result):
    runner = fake_runner(process_result["generic"](0))

    report = install_packages(
        [make_package()], runner=runner, bios_updater=fake_runner(), flag_store=flag_store
    )

    assert report.all_succeeded is True


def test_prepare_installer_downloads_from_location(tmp_path, monkeypatch):
    pkg = Package(
        id="remote",
        base_location="https://example.com/packages/",
        files=(PackageFile(kind=FileKind.INSTALLER, location="remote/setup.exe"),),
        installer=InstallerSpec(install_type=InstallType.CMD, command="setup.exe"),
    )
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"exe"))

    real_fetch = pipeline.fetch_file
    monkeypatch.setattr(
        pipeline,
        "fetch_file",
        lambda *args, **kwargs: real_fetch(*args, transport=transport, **kwargs),
    )

    installer = prepare_installer(pkg, tmp_path)

    assert installer.local_path == tmp_path / "remote" / "setup.exe"
    assert installer.local_path.read_bytes() == b"exe"
    assert installer.location == "remote/setup.exe"


def test_broken_flag_store_does_not_stop_batch(
    make_package, fake_runner, process_result, tmp_path
):
    flags = tmp_path / "flags.yaml"
    flags.write_text("bios_update: [unclosed\n")
    packages = [
        make_package("bios", command="winuptp.exe", installer_name="winuptp.exe"),
        make_package("audio"),
    ]
    runner = fake_runner(process_result["generic"](0))
    bios_updater = fake_runner(process_result["bios"](0))

    report = install_packages(
        packages,
        runner=runner,
        bios_updater=bios_updater,
        flag_store=YamlFlagStore(flags),
    )

    assert [r.id for r in report.results] == ["bios", "audio"]
    assert all(r.success for r in report.results)


def test_inf_package_without_inf_file_is_skipped(
    make_package, fake_runner, flag_store, process_result
):
    packages = [
        make_package("bad", install_type=InstallType.INF),
        make_package("good"),
    ]
    runner = fake_runner(process_result["generic"](0))

    report = install_packages(
        packages, runner=runner, bios_updater=fake_runner(), flag_store=flag_store
    )

    assert [r.id for r in report.results] == ["good"]
    assert "inf_file" in report.warnings[0]
    assert len(runner.calls) == 1
