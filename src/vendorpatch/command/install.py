"""Install command - install every package in a manifest."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from vendorpatch.core.log import logger
from vendorpatch.install.bios import FlashToolUpdater
from vendorpatch.install.flagstore import YamlFlagStore
from vendorpatch.install.pipeline import install_packages
from vendorpatch.install.process import InvokeProcessRunner
from vendorpatch.model.package import load_manifest


class InstallCommand(BaseModel):
    """Install the packages listed in a YAML manifest, in order.

    Packages that cannot be fetched or have an unsupported install
    type are skipped with a warning. Every other package produces a
    result; the run continues after individual failures.
    """

    manifest: CliPositionalArg[Path] = Field(
        description="YAML file listing the packages to install"
    )
    report: Path | None = Field(
        default=None,
        description="Write the install report as JSON to this file",
    )

    def run(self, state: "State") -> int:  # noqa: F821
        """Run the install pipeline.

        Returns:
            Exit code (0=every package installed, 1 otherwise)
        """
        config = state.config
        packages = load_manifest(self.manifest)
        logger.info("Loaded manifest", manifest=str(self.manifest), packages=len(packages))

        runner = InvokeProcessRunner(timeout=config.process.timeout)
        report = install_packages(
            packages,
            runner=runner,
            bios_updater=FlashToolUpdater(runner, config.bios.tools),
            flag_store=YamlFlagStore(config.flag_store.path),
            download_dir=config.download_dir,
            proxy=config.probe.proxy,
            bios_tools=config.bios.tools,
        )

        for result in report.results:
            status = "OK" if result.success else f"FAILED ({result.failure_reason})"
            print(f"{result.id}: {status} pending={result.pending_action.value}")
        for warning in report.warnings:
            print(f"SKIPPED: {warning}")

        if self.report:
            self.report.parent.mkdir(parents=True, exist_ok=True)
            self.report.write_text(report.model_dump_json(indent=2))

        return 0 if report.all_succeeded else 1
