"""Persisted flags describing the most recent BIOS update."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Protocol

import yaml
from pydantic import BaseModel, ConfigDict

from vendorpatch.core.errors import FlagStoreError
from vendorpatch.core.log import logger
from vendorpatch.model.result import ActionNeeded

BIOS_UPDATE = "bios_update"


class FlagRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    action_needed: ActionNeeded
    package_hash: str


class FlagStore(Protocol):
    """Key-value store with a single overwrite operation.

    write() raises FlagStoreError when the record cannot be stored.
    """

    def write(self, record: FlagRecord, category: str = BIOS_UPDATE) -> None:
        ...


class YamlFlagStore:
    """Keeps one record per category in a YAML file.

    Writes replace the category's record outright. Concurrent
    writers are not coordinated.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self, category: str = BIOS_UPDATE) -> FlagRecord | None:
        data = self._load()
        if category not in data:
            return None
        return FlagRecord.model_validate(data[category])

    def write(self, record: FlagRecord, category: str = BIOS_UPDATE) -> None:
        data = self._load()
        data[category] = record.model_dump(mode="json")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=True)
        except OSError as e:
            raise FlagStoreError(f"Cannot write {self.path}: {e}") from e

        logger.info(
            "Flag written",
            category=category,
            path=str(self.path),
            action_needed=record.action_needed.value,
        )

    def _load(self) -> dict:
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise FlagStoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise FlagStoreError(f"{self.path} does not hold a mapping")
        return data
