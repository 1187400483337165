"""Command and resource location resolvers."""

from vendorpatch.resolve.command import (
    CommandResolution,
    candidate_windows,
    resolve_command,
)
from vendorpatch.resolve.locator import (
    Locator,
    LocatorKind,
    ProxySettings,
    locate,
)

__all__ = [
    "CommandResolution",
    "Locator",
    "LocatorKind",
    "ProxySettings",
    "candidate_windows",
    "locate",
    "resolve_command",
]
