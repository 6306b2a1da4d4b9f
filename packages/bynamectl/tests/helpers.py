from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[3]
BY_NAME = "pkgs/by-name"


def run_bynamectl(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "packages/bynamectl/src")
    env.setdefault("RUN_ID", "pytest-run")
    env.pop("BYNAMECTL_ROOT", None)
    return subprocess.run(
        [sys.executable, "-m", "bynamectl.cli", *args],
        cwd=(cwd or ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def shard(name: str) -> str:
    return name.lower()[:2]


def add_package(repo: Path, name: str, body: str = "{ }: { }\n", *, shard_name: str | None = None) -> Path:
    package_dir = repo / BY_NAME / (shard_name or shard(name)) / name
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "package.nix").write_text(body, encoding="utf-8")
    return package_dir


def direct(*, is_derivation: bool = True) -> dict[str, Any]:
    return {"shape": {"kind": "direct"}, "is_derivation": is_derivation}


def call_package(
    file: str,
    line: int,
    column: int,
    *,
    path: str | None = None,
    empty_arg: bool = False,
    is_derivation: bool = True,
) -> dict[str, Any]:
    return {
        "location": {"file": file, "line": line, "column": column},
        "shape": {"kind": "call-package", "path": path, "empty_arg": empty_arg},
        "is_derivation": is_derivation,
    }


def attributes_payload(attributes: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return {"schema_name": "bynamectl.attributes.v1", "schema_version": 1, "attributes": attributes}


def write_attributes(path: Path, attributes: dict[str, dict[str, Any]]) -> Path:
    path.write_text(json.dumps(attributes_payload(attributes), sort_keys=True), encoding="utf-8")
    return path
