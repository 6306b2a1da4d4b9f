from __future__ import annotations

import argparse
import shlex
import sys
from pathlib import Path

from .. import __version__
from ..checks.engine import run_checks
from ..checks.problems import PROBLEM_TYPES_BY_CODE
from ..checks.report import build_report_payload, render_text
from ..core.config import BynameConfig, load_config
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL, ERR_PROBLEMS, ERR_USAGE, OK
from ..core.runtime.logging import log_event
from ..eval.history import FileHistory, HistoryOracle, NoHistory
from ..eval.loader import CommandEvaluator, Evaluator, FileEvaluator
from .output import build_base_payload, dumps_json, emit, render_error, write_output_file


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got `{raw}`") from exc
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got `{raw}`")
    return value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bynamectl", description="lint the by-name package tree")
    p.add_argument("--version", action="version", version=f"bynamectl {__version__}")
    p.add_argument("--run-id", help="run identifier used in logs and reports")
    p.add_argument("--config", help="config file (default: <root>/bynamectl.yaml)")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug log events")
    vg.add_argument("--quiet", action="store_true", help="only emit warnings and errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="check the by-name tree and report every problem")
    check_p.add_argument("--root", help="repository root (default: $BYNAMECTL_ROOT or cwd)")
    source = check_p.add_mutually_exclusive_group()
    source.add_argument("--attributes", help="pre-computed attribute payload (bynamectl.attributes.v1)")
    source.add_argument("--eval-command", help="command printing the attribute payload on stdout")
    check_p.add_argument("--history", help="history payload (bynamectl.history.v1) for the comparison base")
    check_p.add_argument("--jobs", type=_positive_int, help="worker pool size")
    check_p.add_argument("--json", action="store_true", help="emit a bynamectl.check-run.v1 payload")
    check_p.add_argument("--out-file", help="also write the rendered report to this file")

    explain_p = sub.add_parser("explain", help="describe a result code")
    explain_p.add_argument("code", help="result code, e.g. BYNAME_INCORRECT_SHARD")
    explain_p.add_argument("--json", action="store_true", help="emit JSON output")

    version_p = sub.add_parser("version", help="print version and git context")
    version_p.add_argument("--json", action="store_true", help="emit JSON output")
    return p


def _cli_path(raw: str | None) -> str | None:
    return str(Path(raw).resolve()) if raw else None


def _build_evaluator(ctx: RunContext, config: BynameConfig) -> Evaluator | None:
    if config.evaluator.attributes_file:
        return FileEvaluator(ctx.repo_root / config.evaluator.attributes_file)
    if config.evaluator.command:
        return CommandEvaluator(
            command=config.evaluator.command,
            cwd=ctx.repo_root,
            timeout_seconds=config.evaluator.timeout_seconds,
            ctx=ctx,
        )
    return None


def _build_history(ctx: RunContext, config: BynameConfig) -> HistoryOracle:
    if config.history_file:
        return FileHistory.load(ctx.repo_root / config.history_file)
    return NoHistory()


def _run_check(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = load_config(ctx.repo_root, Path(ns.config) if ns.config else None).with_overrides(
        jobs=ns.jobs,
        eval_command=shlex.split(ns.eval_command) if ns.eval_command else None,
        attributes_file=_cli_path(ns.attributes),
        history_file=_cli_path(ns.history),
    )
    report = run_checks(
        ctx.repo_root,
        config,
        _build_evaluator(ctx, config),
        _build_history(ctx, config),
        ctx=ctx,
    )
    if ns.json:
        rendered = dumps_json(build_report_payload(report, run_id=ctx.run_id))
    else:
        rendered = render_text(report)
    if ns.out_file:
        write_output_file(ns.out_file, rendered)
    print(rendered)
    return OK if report.ok else ERR_PROBLEMS


def _run_explain(ctx: RunContext, ns: argparse.Namespace) -> int:
    code = ns.code.strip().upper()
    kind = PROBLEM_TYPES_BY_CODE.get(code)
    if kind is None:
        raise ScriptError(f"unknown result code `{ns.code}`; known codes: {', '.join(sorted(PROBLEM_TYPES_BY_CODE))}", ERR_USAGE, "usage_error")
    if ns.json:
        emit({**build_base_payload(ctx), "code": code, "kind": kind.__name__, "phase": kind.phase}, True)
    else:
        print(f"{code}: {kind.__name__} (phase: {kind.phase})")
    return OK


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    as_json = bool(getattr(ns, "json", False))
    ctx = RunContext.from_args(
        ns.run_id,
        getattr(ns, "root", None),
        "json" if as_json else "text",
        ns.verbose,
        ns.quiet,
        ns.log_json,
    )
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "check":
            return _run_check(ctx, ns)
        if ns.cmd == "explain":
            return _run_explain(ctx, ns)
        if ns.cmd == "version":
            if as_json:
                emit({**build_base_payload(ctx), "bynamectl_version": __version__}, True)
            else:
                print(f"bynamectl {__version__}")
            return OK
        return ERR_USAGE
    except ScriptError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
