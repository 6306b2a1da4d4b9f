from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .problems import PHASES, Problem, problem_path

_PHASE_RANK = {phase: rank for rank, phase in enumerate(PHASES)}


@dataclass(frozen=True)
class CheckReport:
    problems: tuple[Problem, ...]

    @property
    def count(self) -> int:
        return len(self.problems)

    @property
    def ok(self) -> bool:
        return not self.problems


def aggregate(*batches: Iterable[Problem]) -> CheckReport:
    """Merge problem batches into one deterministic order.

    The key is the associated relative path, then the phase, then discovery
    order (batch order first, position inside the batch second). Nothing is
    deduplicated.
    """
    indexed = [problem for batch in batches for problem in batch]
    order = sorted(
        range(len(indexed)),
        key=lambda index: (problem_path(indexed[index]), _PHASE_RANK[indexed[index].phase], index),
    )
    return CheckReport(problems=tuple(indexed[index] for index in order))
