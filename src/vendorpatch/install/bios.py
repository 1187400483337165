"""BIOS flash tool handling.

Flash utilities do not follow the exit code conventions of
ordinary installers, so packages whose command invokes one are
routed here instead of the generic process runner.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from vendorpatch.core.log import logger
from vendorpatch.install.process import ProcessRunner
from vendorpatch.model.result import (
    ActionNeeded,
    BiosUpdateInfo,
    ExternalProcessResult,
    GenericInfo,
)

WINUPTP = "winuptp.exe"
FLASH_CMD = "flash.cmd"

DEFAULT_TOOLS = (WINUPTP, FLASH_CMD)

_SHUTDOWN_HINT = re.compile(r"\bshut\s*down\b|\bpower\s+off\b", re.IGNORECASE)


class BiosUpdater(Protocol):
    """Runs a recognized flash tool; info is always BIOS-flavored."""

    def run(self, command: str, workdir: Path) -> ExternalProcessResult:
        ...


def match_flash_tool(command: str, tools: Sequence[str] = DEFAULT_TOOLS) -> str | None:
    """Return the flash tool name a command invokes, if any."""
    lowered = command.lower()
    for tool in tools:
        if re.search(rf"(^|[\s\\/\"']){re.escape(tool.lower())}(\"|'|\s|$)", lowered):
            return tool.lower()
    return None


class FlashToolUpdater:
    """Runs winuptp.exe or Flash.cmd with unattended switches."""

    def __init__(self, runner: ProcessRunner, tools: Sequence[str] = DEFAULT_TOOLS):
        self.runner = runner
        self.tools = tuple(tools)

    def run(self, command: str, workdir: Path) -> ExternalProcessResult:
        tool = match_flash_tool(command, self.tools)
        if tool == WINUPTP:
            invocation = "winuptp.exe -s"
        elif tool == FLASH_CMD:
            invocation = "Flash.cmd /quiet /sccm /ign"
        else:
            invocation = command

        logger.info("Running BIOS flash tool", tool=tool, command=invocation)
        result = self.runner.run(invocation, workdir)
        timestamp = datetime.now(UTC)

        if result.info is None:
            return result

        info = result.info
        exit_code = info.exit_code
        output = info.stdout if isinstance(info, GenericInfo) else info.log_message
        log_message = self._read_tool_log(workdir, tool) or output

        override = None
        action = ActionNeeded.NONE
        if tool == WINUPTP:
            # winuptp exits 1 after staging a flash that needs a reboot
            if exit_code == 1:
                override = True
            action = ActionNeeded.REBOOT
        elif tool == FLASH_CMD:
            action = (
                ActionNeeded.SHUTDOWN
                if _SHUTDOWN_HINT.search(output)
                else ActionNeeded.REBOOT
            )

        logger.info(
            "BIOS flash tool finished",
            exit_code=exit_code,
            action_needed=action.value,
            success_override=override,
        )
        return ExternalProcessResult(
            err=result.err,
            info=BiosUpdateInfo(
                exit_code=exit_code,
                action_needed=action,
                success_override=override,
                timestamp=timestamp,
                log_message=log_message,
                runtime=info.runtime,
            ),
        )

    @staticmethod
    def _read_tool_log(workdir: Path, tool: str | None) -> str:
        if tool != WINUPTP:
            return ""
        log_file = Path(workdir) / "winuptp.log"
        if not log_file.is_file():
            return ""
        return log_file.read_text(encoding="utf-8", errors="replace")
