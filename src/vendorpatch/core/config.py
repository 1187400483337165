"""Application configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from vendorpatch.core.base import BaseConfig
from vendorpatch.core.log import Logger
from vendorpatch.core.yaml_settings import YamlWithIncludesSettingsSource
from vendorpatch.resolve.locator import PROBE_TIMEOUT, ProxySettings

APP_NAME = "vendorpatch"

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_log_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}


class ProbeConfig(BaseConfig):
    """HTTP liveness probe and download settings."""

    timeout: float = Field(
        default=PROBE_TIMEOUT,
        description="Seconds before a HEAD probe counts as failed",
    )
    proxy: ProxySettings | None = Field(
        default=None,
        description="Proxy for probes and downloads (None for direct)",
    )


class ProcessConfig(BaseConfig):
    """Installer process settings."""

    timeout: float | None = Field(
        default=None,
        description=(
            "Seconds before an installer is abandoned and reported "
            "as TIMEOUT (None waits indefinitely)"
        ),
    )


class FlagStoreConfig(BaseConfig):
    """Where the most recent BIOS update flag is recorded."""

    path: Path = Field(
        default_factory=lambda: (
            Path(platformdirs.site_data_dir(APP_NAME, appauthor=False))
            / "flags.yaml"
        ),
        description="YAML file holding one record per update category",
    )


class BiosConfig(BaseConfig):
    """BIOS flash tool recognition."""

    tools: list[str] = Field(
        default_factory=lambda: ["winuptp.exe", "flash.cmd"],
        description=(
            "Executable names that route a CMD package to the BIOS "
            "updater instead of the generic process runner"
        ),
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default_factory=Logger,
        description="Logger configuration and runtime instance",
    )
    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=lambda: Path(platformdirs.user_log_dir(APP_NAME, appauthor=False)),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )
    run_name: str = Field(
        default="install",
        description="Name of this run, used for log file paths",
    )
    download_dir: Path = Field(
        default_factory=lambda: Path(platformdirs.user_cache_dir(APP_NAME, appauthor=False)) / "packages",
        description="Directory package files are fetched into",
    )
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    flag_store: FlagStoreConfig = Field(default_factory=FlagStoreConfig)
    bios: BiosConfig = Field(default_factory=BiosConfig)

    model_config = ConfigDict(populate_by_name=True)

    def close(self):
        """Close config and the global logger singleton."""
        from vendorpatch.core.log import logger
        logger.close()
        super().close()


class State(BaseSettings):
    """Complete application state as loaded from all sources."""

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="VENDORPATCH_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority.

        Priority order (highest to lowest):
        1. init_settings (direct instantiation arguments)
        2. VENDORPATCH_* environment variables
        3. .env file
        4. YAML files with include support
        5. File secrets
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.*} and {platformdirs.*} style templates in
        every string and Path field."""
        self._substitute_recursive(self)
        return self

    @model_validator(mode="after")
    def _setup_logger(self) -> "State":
        """Initialize the global logger once templates are resolved."""
        from vendorpatch.core.log import setup_logger

        cfg = self.config
        setup_logger(
            log_root=cfg.log_root,
            run_name=cfg.run_name,
            level=cfg.log_level,
            console=cfg.logger.console.model_copy(
                update={"level": cfg.log_level}
            ),
            otlp=cfg.logger.otlp,
            file=cfg.logger.file,
        )
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.download_dir}/bios" → "/home/user/.cache/vendorpatch/packages/bios"
            "{platformdirs.user_log_dir}" → "~/.local/state/vendorpatch/log"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    try:
                        obj = obj(APP_NAME, appauthor=False)
                    except TypeError:
                        obj = obj()

                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z_][a-z._]*)\}', replace_template, value)


__all__ = [
    "BiosConfig",
    "Config",
    "FlagStoreConfig",
    "ProbeConfig",
    "ProcessConfig",
    "State",
]
