from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from ..contracts.ids import HISTORY
from ..contracts.schema.validate import schema_errors
from ..core.errors import ConfigError


class HistoryStatus(str, Enum):
    BY_NAME = "by-name"
    MANUAL = "manual"
    ABSENT = "absent"


class HistoryOracle(Protocol):
    def status(self, name: str) -> HistoryStatus: ...


class NoHistory:
    """Without a comparison base every existing attribute is treated as manual wiring."""

    def status(self, name: str) -> HistoryStatus:
        return HistoryStatus.MANUAL


@dataclass(frozen=True)
class FileHistory:
    by_name: frozenset[str] = field(default_factory=frozenset)
    manual: frozenset[str] = field(default_factory=frozenset)

    def status(self, name: str) -> HistoryStatus:
        if name in self.by_name:
            return HistoryStatus.BY_NAME
        if name in self.manual:
            return HistoryStatus.MANUAL
        return HistoryStatus.ABSENT

    @classmethod
    def load(cls, path: Path) -> "FileHistory":
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read history file {path}: {exc.strerror or exc}") from exc
        if path.suffix == ".json":
            try:
                data = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"invalid JSON in history file {path}: {exc}") from exc
        else:
            import yaml

            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"invalid YAML in history file {path}: {exc}") from exc
        data = data or {}
        errors = schema_errors(HISTORY, data)
        if errors:
            raise ConfigError(f"invalid history file {path}: " + "; ".join(errors))
        return cls(by_name=frozenset(data.get("by_name", [])), manual=frozenset(data.get("manual", [])))
