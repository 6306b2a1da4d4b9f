from __future__ import annotations

import posixpath
import textwrap
from typing import Any, Callable

from .model import Violation
from .problems import (
    CannotDetermineAttributeLocation,
    CaseSensitiveDuplicate,
    IncorrectShard,
    InternalCallPackageUsed,
    InvalidPackageName,
    InvalidShardName,
    MovedOutOfByName,
    NewPackageNotUsingByName,
    NonDerivation,
    NonSyntacticCallPackage,
    OutsidePathReference,
    OutsideSymlink,
    PackageNixDir,
    PackageNixNonExistent,
    PackageNonDir,
    PathInterpolation,
    Problem,
    SearchPath,
    ShardNonDir,
    UndefinedAttr,
    UnresolvablePathReference,
    UnresolvableSymlink,
    WrongCallPackage,
    WrongCallPackagePath,
    problem_position,
)

_RENDERERS: dict[type, Callable[[Any], str]] = {}


def _renders(kind: type) -> Callable[[Callable[[Any], str]], Callable[[Any], str]]:
    def register(fn: Callable[[Any], str]) -> Callable[[Any], str]:
        _RENDERERS[kind] = fn
        return fn

    return register


def create_path_expr(from_file: str, to_file: str) -> str:
    """Path expression that, written inside ``from_file``, points at ``to_file``."""
    # absolute and home paths are written as-is
    if to_file.startswith(("/", "~")):
        return to_file
    return "./" + posixpath.relpath(to_file, posixpath.dirname(from_file) or ".")


def _call_package_arg(path: str | None) -> str:
    if path is None:
        return "..."
    return path if path.startswith(("/", "~")) else f"./{path}"


@_renders(ShardNonDir)
def _shard_non_dir(p: ShardNonDir) -> str:
    return f"{p.relative_shard_path}: This is a file, but it should be a directory."


@_renders(InvalidShardName)
def _invalid_shard_name(p: InvalidShardName) -> str:
    return (
        f'{p.relative_shard_path}: Invalid directory name "{p.shard_name}", must be at most 2 ASCII characters '
        'consisting of a-z, 0-9, "-" or "_".'
    )


@_renders(PackageNonDir)
def _package_non_dir(p: PackageNonDir) -> str:
    return f"{p.relative_package_dir}: This path is a file, but it should be a directory."


@_renders(CaseSensitiveDuplicate)
def _case_sensitive_duplicate(p: CaseSensitiveDuplicate) -> str:
    return f'{p.relative_shard_path}: Duplicate case-sensitive package directories "{p.first}" and "{p.second}".'


@_renders(InvalidPackageName)
def _invalid_package_name(p: InvalidPackageName) -> str:
    return (
        f'{p.relative_package_dir}: Invalid package directory name "{p.package_name}", must be ASCII characters '
        'consisting of a-z, A-Z, 0-9, "-" or "_".'
    )


@_renders(IncorrectShard)
def _incorrect_shard(p: IncorrectShard) -> str:
    return f"{p.relative_package_dir}: Incorrect directory location, should be {p.correct_relative_package_dir} instead."


@_renders(PackageNixNonExistent)
def _package_file_missing(p: PackageNixNonExistent) -> str:
    return f'{p.relative_package_dir}: Missing required "{p.package_file}" file.'


@_renders(PackageNixDir)
def _package_file_is_dir(p: PackageNixDir) -> str:
    return f'{p.relative_package_dir}: "{p.package_file}" must be a file.'


@_renders(UndefinedAttr)
def _undefined_attr(p: UndefinedAttr) -> str:
    return f"pkgs.{p.package_name}: This attribute is not defined but it should be defined automatically as {p.relative_package_file}"


@_renders(WrongCallPackage)
def _wrong_call_package(p: WrongCallPackage) -> str:
    return (
        f"pkgs.{p.package_name}: This attribute is manually defined (most likely in pkgs/top-level/all-packages.nix), "
        f"which is only allowed if the definition is of the form `pkgs.callPackage {p.relative_package_file} {{ ... }}` "
        "with a non-empty second argument."
    )


@_renders(WrongCallPackagePath)
def _wrong_call_package_path(p: WrongCallPackagePath) -> str:
    expected = create_path_expr(p.file, p.expected_path)
    actual = create_path_expr(p.file, p.actual_path)
    return (
        f"- Because {p.relative_package_dir} exists, the attribute `pkgs.{p.package_name}` must be defined like\n"
        "\n"
        f"    {p.package_name} = callPackage {expected} {{ /* ... */ }};\n"
        "\n"
        "  This is however not the case: The first `callPackage` argument is the wrong path.\n"
        f"  It is defined in {p.file}:{p.line}:{p.column} as\n"
        "\n"
        f"    {p.package_name} = callPackage {actual} {{ /* ... */ }};"
    )


@_renders(NonSyntacticCallPackage)
def _non_syntactic_call_package(p: NonSyntacticCallPackage) -> str:
    # the definition starts at its column; restore the leading spaces before dedenting
    definition = textwrap.indent(textwrap.dedent(" " * (p.column - 1) + p.definition), "    ")
    return (
        f"- Because {p.relative_package_dir} exists, the attribute `pkgs.{p.package_name}` must be defined like\n"
        "\n"
        f"    {p.package_name} = callPackage {p.relative_package_file} {{ /* ... */ }};\n"
        "\n"
        "  This is however not the case.\n"
        f"  It is defined in {p.file}:{p.line} as\n"
        "\n"
        f"{definition}"
    )


@_renders(NonDerivation)
def _non_derivation(p: NonDerivation) -> str:
    return f"pkgs.{p.package_name}: This attribute defined by {p.relative_package_file} is not a derivation"


@_renders(MovedOutOfByName)
def _moved_out_of_by_name(p: MovedOutOfByName) -> str:
    arg = _call_package_arg(p.call_package_path)
    if p.empty_arg:
        return (
            f"pkgs.{p.package_name}: This top-level package was previously defined in {p.relative_package_file}, "
            f"but is now manually defined as `callPackage {arg} {{ }}` (e.g. in `pkgs/top-level/all-packages.nix`). "
            "Please move the package back and remove the manual `callPackage`."
        )
    return (
        f"pkgs.{p.package_name}: This top-level package was previously defined in {p.relative_package_file}, "
        f"but is now manually defined as `callPackage {arg} {{ ... }}` (e.g. in `pkgs/top-level/all-packages.nix`). "
        "While the manual `callPackage` is still needed, it's not necessary to move the package files."
    )


@_renders(NewPackageNotUsingByName)
def _new_package_not_using_by_name(p: NewPackageNotUsingByName) -> str:
    arg = _call_package_arg(p.call_package_path)
    if p.empty_arg:
        extra = (
            "Since the second `callPackage` argument is `{ }`, no manual `callPackage` "
            "(e.g. in `pkgs/top-level/all-packages.nix`) is needed anymore."
        )
    else:
        extra = (
            "Since the second `callPackage` argument is not `{ }`, the manual `callPackage` "
            "(e.g. in `pkgs/top-level/all-packages.nix`) is still needed."
        )
    return (
        f"pkgs.{p.package_name}: This is a new top-level package of the form `callPackage {arg} {{ }}`. "
        f"Please define it in {p.relative_package_file} instead. See `{p.readme}` for more details. {extra}"
    )


@_renders(InternalCallPackageUsed)
def _internal_call_package_used(p: InternalCallPackageUsed) -> str:
    return f"pkgs.{p.attr_name}: This attribute is defined using `{p.helper}`, which is an internal function not intended for manual use."


@_renders(CannotDetermineAttributeLocation)
def _cannot_determine_location(p: CannotDetermineAttributeLocation) -> str:
    return f"pkgs.{p.attr_name}: Cannot determine the location of this attribute using `builtins.unsafeGetAttrPos`."


@_renders(OutsideSymlink)
def _outside_symlink(p: OutsideSymlink) -> str:
    return f"{p.relative_package_dir}: Path {p.subpath} is a symlink pointing to a path outside the directory of that package."


@_renders(UnresolvableSymlink)
def _unresolvable_symlink(p: UnresolvableSymlink) -> str:
    return f"{p.relative_package_dir}: Path {p.subpath} is a symlink which cannot be resolved: {p.io_error}."


@_renders(PathInterpolation)
def _path_interpolation(p: PathInterpolation) -> str:
    return (
        f'{p.relative_package_dir}: File {p.subpath} at line {p.line} contains the path expression "{p.text}", '
        "which is not yet supported and may point outside the directory of that package."
    )


@_renders(SearchPath)
def _search_path(p: SearchPath) -> str:
    return (
        f'{p.relative_package_dir}: File {p.subpath} at line {p.line} contains the nix search path expression "{p.text}" '
        "which may point outside the directory of that package."
    )


@_renders(OutsidePathReference)
def _outside_path_reference(p: OutsidePathReference) -> str:
    return (
        f'{p.relative_package_dir}: File {p.subpath} at line {p.line} contains the path expression "{p.text}" '
        "which may point outside the directory of that package."
    )


@_renders(UnresolvablePathReference)
def _unresolvable_path_reference(p: UnresolvablePathReference) -> str:
    return (
        f'{p.relative_package_dir}: File {p.subpath} at line {p.line} contains the path expression "{p.text}" '
        f"which cannot be resolved: {p.io_error}."
    )


def registered_kinds() -> frozenset[type]:
    return frozenset(_RENDERERS)


def render_problem(problem: Problem) -> str:
    renderer = _RENDERERS.get(type(problem))
    if renderer is None:
        raise TypeError(f"no renderer registered for {type(problem).__name__}")
    return renderer(problem)


def to_violation(problem: Problem) -> Violation:
    path, line, column = problem_position(problem)
    return Violation(
        code=problem.code,
        message=render_problem(problem),
        kind=type(problem).__name__,
        phase=problem.phase,
        path=path,
        line=line,
        column=column,
    )
