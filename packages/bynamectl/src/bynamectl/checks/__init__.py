"""By-name tree checks: structure, attribute wiring and path containment."""
from .aggregate import CheckReport, aggregate
from .engine import run_checks
from .render import render_problem, to_violation

__all__ = ["CheckReport", "aggregate", "render_problem", "run_checks", "to_violation"]
