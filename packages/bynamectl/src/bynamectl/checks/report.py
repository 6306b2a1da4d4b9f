from __future__ import annotations

from collections import Counter
from typing import Any

from ..contracts.ids import CHECK_RUN
from ..contracts.schema import validate
from .aggregate import CheckReport
from .model import CheckStatus
from .render import render_problem, to_violation


def build_report_payload(report: CheckReport, *, run_id: str = "") -> dict[str, Any]:
    violations = [to_violation(problem) for problem in report.problems]
    payload: dict[str, Any] = {
        "schema_name": CHECK_RUN,
        "schema_version": 1,
        "tool": "bynamectl",
        "kind": "byname-check",
        "run_id": run_id,
        "status": (CheckStatus.OK if report.ok else CheckStatus.FAIL).value,
        "summary": {
            "total": report.count,
            "by_code": dict(sorted(Counter(str(item.code) for item in violations).items())),
        },
        "problems": [
            {
                "code": str(item.code),
                "kind": item.kind,
                "phase": item.phase,
                "path": item.path,
                "line": item.line,
                "column": item.column,
                "message": item.message,
            }
            for item in violations
        ],
    }
    validate(CHECK_RUN, payload)
    return payload


def render_text(report: CheckReport) -> str:
    if report.ok:
        return "Validated successfully"
    blocks = [render_problem(problem) for problem in report.problems]
    blocks.append(f"Found {report.count} problem(s).")
    return "\n".join(blocks)
