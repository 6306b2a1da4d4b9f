from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

_RESULT_CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


@dataclass(frozen=True, order=True)
class ResultCode:
    value: str

    def __post_init__(self) -> None:
        value = str(self.value).strip()
        if not _RESULT_CODE_PATTERN.fullmatch(value):
            raise ValueError(f"invalid result_code `{value}`: expected UPPER_SNAKE_CASE")
        object.__setattr__(self, "value", value)

    def __str__(self) -> str:
        return self.value


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class CheckStatus(str, Enum):
    OK = "ok"
    FAIL = "fail"


@dataclass(frozen=True)
class Violation:
    code: ResultCode | str
    message: str
    kind: str = ""
    phase: str = ""
    path: str = ""
    line: int = 0
    column: int = 0
    severity: Severity = Severity.ERROR

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", str(ResultCode(str(self.code))))
        object.__setattr__(self, "message", str(self.message).rstrip())
        object.__setattr__(self, "path", str(self.path).strip())
        object.__setattr__(self, "line", int(self.line or 0))
        object.__setattr__(self, "column", int(self.column or 0))
