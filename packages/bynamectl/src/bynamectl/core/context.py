from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from .process import run_command

OutputFormat = Literal["text", "json"]


def _git_state(repo_root: Path) -> tuple[str, bool]:
    """Short HEAD sha and dirty flag; a tree outside git reads as ``("unknown", True)``."""
    head = run_command(["git", "rev-parse", "--short", "HEAD"], repo_root)
    if head.code != 0 or not head.stdout.strip():
        return "unknown", True
    status = run_command(["git", "status", "--porcelain"], repo_root)
    return head.stdout.strip(), status.code != 0 or bool(status.stdout.strip())


@dataclass(frozen=True)
class RunContext:
    run_id: str
    repo_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool

    @property
    def log_threshold(self) -> int:
        if self.quiet:
            return 30
        if self.verbose:
            return 10
        return 20

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        repo_root: str | Path | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        root = Path(repo_root or os.environ.get("BYNAMECTL_ROOT", ".")).resolve()
        sha, dirty = _git_state(root)
        default_run = f"byname-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{sha}"
        return cls(
            run_id=run_id or os.environ.get("RUN_ID", default_run),
            repo_root=root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=sha,
            git_dirty=dirty,
        )
