from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from ..contracts.ids import ATTRIBUTES
from ..contracts.schema.validate import schema_errors
from ..core.errors import EvaluationError
from ..core.process import run_command
from .model import AttributeDefinition, AttributeMap, DefinitionShape, Location, ShapeKind

if TYPE_CHECKING:
    from ..core.context import RunContext


class Evaluator(Protocol):
    def evaluate(self) -> AttributeMap: ...


def attribute_map_from_payload(payload: Any, *, source: str) -> AttributeMap:
    errors = schema_errors(ATTRIBUTES, payload)
    if errors:
        raise EvaluationError(f"invalid attribute payload from {source}: " + "; ".join(errors[:5]))
    definitions: dict[str, AttributeDefinition] = {}
    for name, raw in payload["attributes"].items():
        shape_raw = raw["shape"]
        location_raw = raw.get("location")
        definitions[name] = AttributeDefinition(
            name=name,
            shape=DefinitionShape(
                kind=ShapeKind(shape_raw["kind"]),
                path=shape_raw.get("path"),
                empty_arg=bool(shape_raw.get("empty_arg", False)),
            ),
            is_derivation=raw["is_derivation"],
            location=Location(**location_raw) if location_raw else None,
        )
    return AttributeMap(definitions)


def _parse_json(text: str, *, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise EvaluationError(f"evaluator output from {source} is not valid JSON: {exc}") from exc


@dataclass(frozen=True)
class FileEvaluator:
    """Reads the attribute payload written by an earlier evaluator run."""

    path: Path

    def evaluate(self) -> AttributeMap:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise EvaluationError(f"cannot read attribute payload {self.path}: {exc.strerror or exc}") from exc
        return attribute_map_from_payload(_parse_json(text, source=str(self.path)), source=str(self.path))


@dataclass(frozen=True)
class CommandEvaluator:
    """Runs the evaluator command in the repository root and parses its stdout."""

    command: tuple[str, ...]
    cwd: Path
    timeout_seconds: int = 0
    ctx: RunContext | None = None

    def evaluate(self) -> AttributeMap:
        if not self.command:
            raise EvaluationError("evaluator command is empty")
        result = run_command(list(self.command), self.cwd, timeout_seconds=self.timeout_seconds, ctx=self.ctx)
        source = f"`{' '.join(self.command)}`"
        if result.code != 0:
            detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else f"exit code {result.code}"
            raise EvaluationError(f"evaluator command {source} failed ({result.code}): {detail}")
        return attribute_map_from_payload(_parse_json(result.stdout, source=source), source=source)
