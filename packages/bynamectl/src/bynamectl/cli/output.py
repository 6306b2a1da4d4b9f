"""CLI payload output helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def dumps_json(payload: Any, *, pretty: bool = False) -> str:
    """Stable JSON text: sorted keys, two-space indent when ``pretty``."""
    return json.dumps(payload, indent=2 if pretty else None, sort_keys=True)


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def build_base_payload(ctx, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "bynamectl",
        "status": status,
        "run_id": ctx.run_id,
        "repo_root": str(ctx.repo_root),
        "format": ctx.output_format,
        "git_sha": ctx.git_sha,
        "git_dirty": ctx.git_dirty,
    }


def write_output_file(path: str, rendered: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(rendered + "\n", encoding="utf-8")


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error") -> str:
    if not as_json:
        return f"error: {message}"
    errors = [{"code": code, "kind": kind, "message": message}]
    return dumps_json({"schema_version": 1, "tool": "bynamectl", "status": "error", "errors": errors})
