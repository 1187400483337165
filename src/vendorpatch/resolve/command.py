"""Split a free-form installer command into executable and arguments.

Vendor install commands are single strings such as

    C:\\Program Files\\Vendor\\setup.exe /quiet
    START /WAIT flash.cmd
    "setup.exe" -s

There is no reliable delimiter between the executable and its
arguments: paths may contain unquoted spaces and commands may be
prefixed with launcher tokens. The resolver tries every run of
consecutive whitespace-separated tokens as a candidate executable,
longest first, and keeps the first one that exists on disk.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Iterator, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from vendorpatch.core.log import logger

_ENVIRONMENT_KEY = (
    r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
)


class CommandResolution(BaseModel):
    """An executable found on disk plus the argument tail."""

    model_config = ConfigDict(frozen=True)

    executable: Path
    arguments: str = ""


def _machine_environment(name: str) -> str:
    """Read a machine-scope environment variable.

    On Windows the value comes from the system environment in the
    registry, so a user's personal PATH never takes part. Other
    platforms have no such split and use the process environment.
    """
    if platform.system() != "Windows":
        return os.environ.get(name, "")

    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _ENVIRONMENT_KEY) as key:
            value, _ = winreg.QueryValueEx(key, name)
    except FileNotFoundError:
        return ""
    return os.path.expandvars(str(value))


def machine_search_path() -> list[str]:
    """Directories on the machine-scope PATH, in order."""
    return [
        entry for entry in _machine_environment("PATH").split(os.pathsep)
        if entry.strip()
    ]


def machine_path_ext() -> list[str]:
    """Executable extensions from the machine-scope PATHEXT."""
    return [
        ext for ext in _machine_environment("PATHEXT").split(";")
        if ext.strip()
    ]


def candidate_windows(count: int) -> Iterator[tuple[int, int]]:
    """Yield (start, end) token index pairs in search priority.

    For each start position, every end position is tried from the
    last token backwards, so the longest window wins. Later start
    positions drop leading launcher tokens.

    >>> list(candidate_windows(3))
    [(0, 2), (0, 1), (0, 0), (1, 2), (1, 1), (2, 2)]
    """
    for start in range(count):
        for end in range(count - 1, start - 1, -1):
            yield start, end


def _find_file(
    candidate: str,
    workdir: Path,
    search_path: Sequence[str],
    path_ext: Sequence[str],
) -> Path | None:
    literal = Path(candidate)
    if literal.is_file():
        return literal

    relative = workdir / candidate
    if relative.is_file():
        return relative

    for directory in search_path:
        base = Path(directory) / candidate
        if base.is_file():
            return base
        for ext in path_ext:
            with_ext = Path(f"{base}{ext}")
            if with_ext.is_file():
                return with_ext

    return None


def resolve_command(
    command: str,
    workdir: Path | str,
    search_path: Sequence[str] | None = None,
    path_ext: Sequence[str] | None = None,
) -> CommandResolution | None:
    """Find the executable a command string refers to.

    Args:
        command: Free-form command string
        workdir: Directory relative candidates are resolved against
        search_path: Directories to search (machine PATH if None)
        path_ext: Extensions to try in search_path directories
            (machine PATHEXT if None)

    Returns:
        CommandResolution with the absolute executable path and the
        tokens after the matched window joined as arguments, or None
        if no candidate exists. Tokens before the window are
        launcher prefixes and are dropped.
    """
    tokens = command.split()
    workdir = Path(workdir)
    if search_path is None:
        search_path = machine_search_path()
    if path_ext is None:
        path_ext = machine_path_ext()

    for start, end in candidate_windows(len(tokens)):
        candidate = " ".join(tokens[start:end + 1]).strip("\"'")
        if not candidate:
            continue

        found = _find_file(candidate, workdir, search_path, path_ext)
        if found is None:
            continue

        resolution = CommandResolution(
            executable=found.resolve(),
            arguments=" ".join(tokens[end + 1:]),
        )
        logger.debug(
            "Resolved command",
            command=command,
            executable=str(resolution.executable),
            arguments=resolution.arguments,
            dropped=" ".join(tokens[:start]),
        )
        return resolution

    logger.debug("Could not resolve command", command=command, workdir=str(workdir))
    return None
