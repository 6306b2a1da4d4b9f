"""Closed set of problems reported by the by-name checks.

Every kind is an independent frozen dataclass carrying exactly the fields
needed to render and locate it. ``Problem`` is the union of all kinds; there
is no shared base class, consumers dispatch on the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

PHASE_STRUCTURE = "structure"
PHASE_ATTRIBUTES = "attributes"
PHASE_REFERENCES = "references"
PHASES = (PHASE_STRUCTURE, PHASE_ATTRIBUTES, PHASE_REFERENCES)


@dataclass(frozen=True)
class IoCause:
    """Message of an underlying filesystem failure, kept as data."""

    message: str
    errno: int | None = None

    @classmethod
    def from_exception(cls, exc: OSError) -> "IoCause":
        reason = exc.strerror or str(exc) or exc.__class__.__name__
        if exc.errno:
            return cls(message=f"{reason} (os error {exc.errno})", errno=exc.errno)
        return cls(message=reason)

    def __str__(self) -> str:
        return self.message


# structure


@dataclass(frozen=True)
class ShardNonDir:
    code: ClassVar[str] = "BYNAME_SHARD_NON_DIR"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_shard_path: str


@dataclass(frozen=True)
class InvalidShardName:
    code: ClassVar[str] = "BYNAME_INVALID_SHARD_NAME"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_shard_path: str
    shard_name: str


@dataclass(frozen=True)
class PackageNonDir:
    code: ClassVar[str] = "BYNAME_PACKAGE_NON_DIR"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_package_dir: str


@dataclass(frozen=True)
class CaseSensitiveDuplicate:
    code: ClassVar[str] = "BYNAME_CASE_SENSITIVE_DUPLICATE"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_shard_path: str
    first: str
    second: str


@dataclass(frozen=True)
class InvalidPackageName:
    code: ClassVar[str] = "BYNAME_INVALID_PACKAGE_NAME"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_package_dir: str
    package_name: str


@dataclass(frozen=True)
class IncorrectShard:
    code: ClassVar[str] = "BYNAME_INCORRECT_SHARD"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_package_dir: str
    correct_relative_package_dir: str


@dataclass(frozen=True)
class PackageNixNonExistent:
    code: ClassVar[str] = "BYNAME_PACKAGE_FILE_MISSING"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_package_dir: str
    package_file: str


@dataclass(frozen=True)
class PackageNixDir:
    code: ClassVar[str] = "BYNAME_PACKAGE_FILE_IS_DIR"
    phase: ClassVar[str] = PHASE_STRUCTURE
    relative_package_dir: str
    package_file: str


# attributes


@dataclass(frozen=True)
class UndefinedAttr:
    code: ClassVar[str] = "BYNAME_UNDEFINED_ATTR"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    relative_package_file: str
    package_name: str


@dataclass(frozen=True)
class WrongCallPackage:
    code: ClassVar[str] = "BYNAME_WRONG_CALL_PACKAGE"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    relative_package_file: str
    package_name: str


@dataclass(frozen=True)
class WrongCallPackagePath:
    code: ClassVar[str] = "BYNAME_WRONG_CALL_PACKAGE_PATH"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    package_name: str
    relative_package_dir: str
    file: str
    line: int
    column: int
    actual_path: str
    expected_path: str


@dataclass(frozen=True)
class NonSyntacticCallPackage:
    code: ClassVar[str] = "BYNAME_NON_SYNTACTIC_CALL_PACKAGE"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    package_name: str
    relative_package_dir: str
    relative_package_file: str
    file: str
    line: int
    column: int
    definition: str


@dataclass(frozen=True)
class NonDerivation:
    code: ClassVar[str] = "BYNAME_NON_DERIVATION"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    relative_package_file: str
    package_name: str


@dataclass(frozen=True)
class MovedOutOfByName:
    code: ClassVar[str] = "BYNAME_MOVED_OUT_OF_BY_NAME"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    package_name: str
    relative_package_file: str
    call_package_path: str | None
    empty_arg: bool


@dataclass(frozen=True)
class NewPackageNotUsingByName:
    code: ClassVar[str] = "BYNAME_NEW_PACKAGE_NOT_USING_BY_NAME"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    package_name: str
    relative_package_file: str
    readme: str
    call_package_path: str | None
    empty_arg: bool


@dataclass(frozen=True)
class InternalCallPackageUsed:
    code: ClassVar[str] = "BYNAME_INTERNAL_CALL_PACKAGE_USED"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    attr_name: str
    relative_package_dir: str
    helper: str


@dataclass(frozen=True)
class CannotDetermineAttributeLocation:
    code: ClassVar[str] = "BYNAME_CANNOT_DETERMINE_ATTRIBUTE_LOCATION"
    phase: ClassVar[str] = PHASE_ATTRIBUTES
    attr_name: str
    relative_package_dir: str


# references


@dataclass(frozen=True)
class OutsideSymlink:
    code: ClassVar[str] = "BYNAME_OUTSIDE_SYMLINK"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str


@dataclass(frozen=True)
class UnresolvableSymlink:
    code: ClassVar[str] = "BYNAME_UNRESOLVABLE_SYMLINK"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str
    io_error: IoCause


@dataclass(frozen=True)
class PathInterpolation:
    code: ClassVar[str] = "BYNAME_PATH_INTERPOLATION"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str
    line: int
    text: str


@dataclass(frozen=True)
class SearchPath:
    code: ClassVar[str] = "BYNAME_SEARCH_PATH"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str
    line: int
    text: str


@dataclass(frozen=True)
class OutsidePathReference:
    code: ClassVar[str] = "BYNAME_OUTSIDE_PATH_REFERENCE"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str
    line: int
    text: str


@dataclass(frozen=True)
class UnresolvablePathReference:
    code: ClassVar[str] = "BYNAME_UNRESOLVABLE_PATH_REFERENCE"
    phase: ClassVar[str] = PHASE_REFERENCES
    relative_package_dir: str
    subpath: str
    line: int
    text: str
    io_error: IoCause


Problem = (
    ShardNonDir
    | InvalidShardName
    | PackageNonDir
    | CaseSensitiveDuplicate
    | InvalidPackageName
    | IncorrectShard
    | PackageNixNonExistent
    | PackageNixDir
    | UndefinedAttr
    | WrongCallPackage
    | WrongCallPackagePath
    | NonSyntacticCallPackage
    | NonDerivation
    | MovedOutOfByName
    | NewPackageNotUsingByName
    | InternalCallPackageUsed
    | CannotDetermineAttributeLocation
    | OutsideSymlink
    | UnresolvableSymlink
    | PathInterpolation
    | SearchPath
    | OutsidePathReference
    | UnresolvablePathReference
)

PROBLEM_TYPES: tuple[type, ...] = Problem.__args__

PROBLEM_TYPES_BY_CODE: dict[str, type] = {kind.code: kind for kind in PROBLEM_TYPES}


def problem_path(problem: Problem) -> str:
    """Relative path a problem is attached to, used as the primary ordering key."""
    for name in ("relative_package_dir", "relative_shard_path"):
        value = getattr(problem, name, None)
        if value is not None:
            return value
    package_file = getattr(problem, "relative_package_file")
    return package_file.rsplit("/", 1)[0]


def problem_position(problem: Problem) -> tuple[str, int, int]:
    """File, line and column of a problem when it points inside a file."""
    file = getattr(problem, "file", None)
    if file is not None:
        return file, int(problem.line), int(problem.column)
    subpath = getattr(problem, "subpath", None)
    if subpath is not None:
        return f"{problem_path(problem)}/{subpath}", int(getattr(problem, "line", 0)), 0
    return problem_path(problem), 0, 0
