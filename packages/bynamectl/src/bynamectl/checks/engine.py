from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.config import BynameConfig
from ..core.runtime.logging import log_event
from ..eval.history import HistoryOracle, NoHistory
from ..eval.loader import Evaluator
from .aggregate import CheckReport, aggregate
from .attributes import check_attributes
from .layout import ByNameLayout
from .problems import Problem
from .references import SourceClassifier, check_references, suffix_classifier
from .structure import PackageDirectory, check_structure

if TYPE_CHECKING:
    from ..core.context import RunContext


def _log(ctx: RunContext | None, level: str, action: str, **fields: object) -> None:
    if ctx is not None:
        log_event(ctx, level, "engine", action, **fields)


def run_checks(
    repo_root: Path,
    config: BynameConfig,
    evaluator: Evaluator | None,
    history: HistoryOracle | None = None,
    *,
    ctx: RunContext | None = None,
    is_source: SourceClassifier | None = None,
) -> CheckReport:
    """Run all three phases and return the ordered problem report.

    The structure scan completes first. Path analysis (one task per package
    directory) and evaluation plus attribute checks then share a thread pool.
    An evaluator failure propagates and no report is produced.
    """
    layout = ByNameLayout(by_name_dir=config.by_name_dir, package_file=config.package_file)
    oracle = history or NoHistory()
    classify = is_source or suffix_classifier(config.source_suffixes)

    started = time.perf_counter()
    structure = check_structure(repo_root, layout)
    _log(ctx, "info", "structure", packages=len(structure.packages), problems=len(structure.problems))

    def _attributes() -> list[Problem]:
        if evaluator is None:
            _log(ctx, "warn", "attributes-skipped", reason="no evaluator configured")
            return []
        attributes = evaluator.evaluate()
        _log(ctx, "debug", "evaluated", attributes=len(attributes))
        return check_attributes(repo_root, layout, structure.packages, attributes, oracle)

    def _references(package: PackageDirectory) -> list[Problem]:
        return check_references(package, max_symlink_hops=config.max_symlink_hops, is_source=classify)

    with ThreadPoolExecutor(max_workers=max(1, config.jobs)) as ex:
        attributes_future = ex.submit(_attributes)
        reference_batches = list(ex.map(_references, structure.packages))
        attribute_problems = attributes_future.result()
    _log(ctx, "info", "attributes", problems=len(attribute_problems))
    _log(ctx, "info", "references", problems=sum(len(batch) for batch in reference_batches))

    report = aggregate(structure.problems, attribute_problems, *reference_batches)
    _log(ctx, "info", "done", problems=report.count, duration_ms=int((time.perf_counter() - started) * 1000))
    return report
