"""bynamectl core package."""
from .context import RunContext
from .errors import ConfigError, EvaluationError, ScriptError
from .runtime.logging import log_event, utc_now_iso

__all__ = [
    "ConfigError",
    "EvaluationError",
    "RunContext",
    "ScriptError",
    "log_event",
    "utc_now_iso",
]
