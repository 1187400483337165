"""Process outcomes and per-package install results."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# failure_reason when the installer ran but its exit code was rejected
EXIT_CODE_MISMATCH = "installer exit code not in success set"


class ProcessError(str, Enum):
    """Why an external process produced no usable result."""

    NONE = "NONE"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    LAUNCH_FAILED = "LAUNCH_FAILED"
    TIMEOUT = "TIMEOUT"


class ActionNeeded(str, Enum):
    """System action a BIOS flash tool asked for."""

    NONE = "NONE"
    SHUTDOWN = "SHUTDOWN"
    REBOOT = "REBOOT"


class PendingAction(str, Enum):
    NONE = "NONE"
    REBOOT_SUGGESTED = "REBOOT_SUGGESTED"
    REBOOT_MANDATORY = "REBOOT_MANDATORY"
    SHUTDOWN = "SHUTDOWN"


class GenericInfo(BaseModel):
    """Outcome of an ordinary installer process."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["generic"] = "generic"
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    runtime: timedelta = timedelta(0)


class BiosUpdateInfo(BaseModel):
    """Outcome of a BIOS flash tool run.

    success_override, when set, replaces the exit code check:
    some flash tools return a non-zero code after a successful
    flash that still needs a reboot.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["bios"] = "bios"
    exit_code: int
    action_needed: ActionNeeded = ActionNeeded.NONE
    success_override: bool | None = None
    timestamp: datetime
    log_message: str = ""
    runtime: timedelta = timedelta(0)


ProcessInfo = Annotated[GenericInfo | BiosUpdateInfo, Field(discriminator="kind")]


class ExternalProcessResult(BaseModel):
    """Terminal result handed back by a process collaborator.

    info is None when the process never produced an exit code
    (err is not NONE in that case).
    """

    model_config = ConfigDict(frozen=True)

    err: ProcessError = ProcessError.NONE
    info: ProcessInfo | None = None


class PackageInstallResult(BaseModel):
    """Outcome of installing one package. Written once."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: str
    success: bool
    failure_reason: str = ""
    pending_action: PendingAction = PendingAction.NONE
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    log_output: str = ""
    runtime: timedelta = timedelta(0)
