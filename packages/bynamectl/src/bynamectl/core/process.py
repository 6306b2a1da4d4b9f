from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .runtime.logging import log_event

if TYPE_CHECKING:
    from .context import RunContext


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int


def run_command(
    cmd: list[str],
    cwd: Path,
    timeout_seconds: int = 0,
    ctx: RunContext | None = None,
) -> CommandResult:
    started = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            text=True,
            capture_output=True,
            check=False,
            timeout=(timeout_seconds if timeout_seconds > 0 else None),
        )
        result = CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except subprocess.TimeoutExpired as exc:
        result = CommandResult(
            code=124,
            stdout=_decode(exc.stdout),
            stderr=(_decode(exc.stderr) + f"\ncommand timed out after {timeout_seconds}s").strip(),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except OSError as exc:
        result = CommandResult(
            code=127,
            stdout="",
            stderr=f"failed to start `{cmd[0]}`: {exc.strerror or exc}",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    if ctx and not ctx.quiet:
        log_event(
            ctx,
            "info",
            "process",
            "run-command",
            command=" ".join(cmd),
            cwd=str(cwd),
            code=result.code,
            duration_ms=result.duration_ms,
        )
    return result


def _decode(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw
