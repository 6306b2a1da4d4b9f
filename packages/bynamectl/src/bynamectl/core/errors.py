from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_CONFIG, ERR_EVAL, ERR_INTERNAL


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class ConfigError(ScriptError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_CONFIG, "config_error")


class EvaluationError(ScriptError):
    """The evaluator could not produce an attribute map; the run cannot continue."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_EVAL, "evaluation_failed")
