"""Locate command - classify and resolve a path or URL."""

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from vendorpatch.resolve.locator import locate


class LocateCommand(BaseModel):
    """Resolve a package file location to a file path or URL."""

    path: CliPositionalArg[str] = Field(
        description="Absolute path, relative path or HTTP(S) URL"
    )
    base: str | None = Field(
        default=None,
        description="Base path or URL relative locations resolve against",
    )
    probe: bool = Field(
        default=False,
        description="Send a HEAD request to check an HTTP(S) location",
    )

    def run(self, state: "State") -> int:  # noqa: F821
        """Print the locator.

        Returns:
            Exit code (0=valid, 1=invalid or unreachable when probed)
        """
        probe_config = state.config.probe
        locator = locate(
            self.path,
            self.base,
            probe=self.probe,
            proxy=probe_config.proxy,
            timeout=probe_config.timeout,
        )
        print(locator.model_dump_json(indent=2))

        if not locator.valid:
            return 1
        if self.probe and not locator.reachable:
            return 1
        return 0
