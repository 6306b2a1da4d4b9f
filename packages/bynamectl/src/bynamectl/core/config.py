from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..contracts.ids import CONFIG
from ..contracts.schema.validate import schema_errors
from .errors import ConfigError

DEFAULT_CONFIG_NAME = "bynamectl.yaml"


@dataclass(frozen=True)
class EvaluatorConfig:
    command: tuple[str, ...] = ()
    attributes_file: str | None = None
    timeout_seconds: int = 0


@dataclass(frozen=True)
class BynameConfig:
    by_name_dir: str = "pkgs/by-name"
    package_file: str = "package.nix"
    source_suffixes: tuple[str, ...] = (".nix",)
    max_symlink_hops: int = 40
    jobs: int = 4
    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)
    history_file: str | None = None

    def with_overrides(self, **overrides: object) -> "BynameConfig":
        evaluator = self.evaluator
        command = overrides.pop("eval_command", None)
        attributes_file = overrides.pop("attributes_file", None)
        if command:
            evaluator = replace(evaluator, command=tuple(str(part) for part in command), attributes_file=None)
        if attributes_file:
            evaluator = replace(evaluator, attributes_file=str(attributes_file), command=())
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, evaluator=evaluator, **values)


def _load_yaml(path: Path) -> Any:
    import yaml

    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc.strerror or exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in config {path}: {exc}") from exc


def config_from_mapping(data: dict[str, Any], *, source: str = "<config>") -> BynameConfig:
    errors = schema_errors(CONFIG, data)
    if errors:
        raise ConfigError(f"invalid config {source}: " + "; ".join(errors))
    evaluator_raw = data.get("evaluator", {})
    history_raw = data.get("history", {})
    defaults = BynameConfig()
    return BynameConfig(
        by_name_dir=str(data.get("by_name_dir", defaults.by_name_dir)).strip("/"),
        package_file=str(data.get("package_file", defaults.package_file)),
        source_suffixes=tuple(data.get("source_suffixes", defaults.source_suffixes)),
        max_symlink_hops=int(data.get("max_symlink_hops", defaults.max_symlink_hops)),
        jobs=int(data.get("jobs", defaults.jobs)),
        evaluator=EvaluatorConfig(
            command=tuple(evaluator_raw.get("command", ())),
            attributes_file=evaluator_raw.get("attributes_file"),
            timeout_seconds=int(evaluator_raw.get("timeout_seconds", 0)),
        ),
        history_file=history_raw.get("file"),
    )


def load_config(repo_root: Path, config_path: Path | None = None) -> BynameConfig:
    explicit = config_path is not None
    path = config_path if config_path is not None else repo_root / DEFAULT_CONFIG_NAME
    if not path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return BynameConfig()
    data = _load_yaml(path)
    if data is None:
        return BynameConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"invalid config {path}: root must be a mapping")
    return config_from_mapping(data, source=str(path))
