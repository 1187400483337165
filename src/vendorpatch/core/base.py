"""Closeable configuration models.

Kept apart from config.py so log.py can build its sinks on
BaseConfig without importing the whole configuration.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    def close(self) -> None:
        ...


class BaseCloseable(BaseModel):
    """Model that closes its Closeable fields when it is closed.

    Config closes its Logger, which closes each Sink and with it
    the open log file. A child that fails to close is reported on
    stderr and the rest are still closed.
    """

    def close(self):
        for name in self.__class__.model_fields:
            child = getattr(self, name, None)
            if not isinstance(child, Closeable):
                continue
            try:
                child.close()
            except Exception as e:
                print(f"Warning: could not close {name}: {e}", file=sys.stderr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """A configuration section loaded from YAML, env or CLI."""


__all__ = ["BaseCloseable", "BaseConfig", "Closeable"]
