from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Callable, Iterable

from .nix_syntax import PATH_KIND_INTERPOLATION, PATH_KIND_SEARCH, NixSource, PathToken
from .problems import (
    IoCause,
    OutsidePathReference,
    OutsideSymlink,
    PathInterpolation,
    Problem,
    SearchPath,
    UnresolvablePathReference,
    UnresolvableSymlink,
)
from .structure import PackageDirectory

SourceClassifier = Callable[[Path], bool]

DEFAULT_MAX_SYMLINK_HOPS = 40


def suffix_classifier(suffixes: Iterable[str] = (".nix",)) -> SourceClassifier:
    wanted = tuple(suffixes)

    def is_source(path: Path) -> bool:
        return path.name.endswith(wanted)

    return is_source


def _loop_error(path: Path) -> OSError:
    return OSError(errno.ELOOP, os.strerror(errno.ELOOP), str(path))


def resolve_symlink(path: Path, max_hops: int = DEFAULT_MAX_SYMLINK_HOPS) -> Path:
    """Resolve ``path`` following at most ``max_hops`` links; raises OSError on loops or dangling links."""
    current = path
    for _ in range(max_hops):
        if not current.is_symlink():
            break
        target = Path(os.readlink(current))
        current = target if target.is_absolute() else current.parent / target
    else:
        if current.is_symlink():
            raise _loop_error(path)
    try:
        return current.resolve(strict=True)
    except RuntimeError as exc:
        raise _loop_error(path) from exc


def _is_inside(target: Path, directory: Path) -> bool:
    return target == directory or directory in target.parents


def _check_symlink(package: PackageDirectory, canonical_dir: Path, entry: Path, subpath: str, max_hops: int) -> list[Problem]:
    try:
        target = resolve_symlink(entry, max_hops)
    except OSError as exc:
        return [UnresolvableSymlink(relative_package_dir=package.relative_dir, subpath=subpath, io_error=IoCause.from_exception(exc))]
    if not _is_inside(target, canonical_dir):
        return [OutsideSymlink(relative_package_dir=package.relative_dir, subpath=subpath)]
    return []


def _resolve_static(source_file: Path, text: str) -> Path:
    target = Path(text).expanduser() if text.startswith("~") else source_file.parent / text
    try:
        return target.resolve(strict=True)
    except RuntimeError as exc:
        raise _loop_error(target) from exc


def _token_problem(package: PackageDirectory, canonical_dir: Path, source_file: Path, subpath: str, token: PathToken) -> Problem | None:
    common = {"relative_package_dir": package.relative_dir, "subpath": subpath, "line": token.line, "text": token.text}
    if token.kind == PATH_KIND_SEARCH:
        return SearchPath(**common)
    if token.kind == PATH_KIND_INTERPOLATION:
        return PathInterpolation(**common)
    try:
        resolved = _resolve_static(source_file, token.text)
    except OSError as exc:
        return UnresolvablePathReference(**common, io_error=IoCause.from_exception(exc))
    if not _is_inside(resolved, canonical_dir):
        return OutsidePathReference(**common)
    return None


def _check_source(package: PackageDirectory, canonical_dir: Path, source_file: Path, subpath: str) -> list[Problem]:
    text = source_file.read_text(encoding="utf-8", errors="replace")
    problems: list[Problem] = []
    for token in NixSource(text).path_tokens():
        problem = _token_problem(package, canonical_dir, source_file, subpath, token)
        if problem is not None:
            problems.append(problem)
    return problems


def check_references(
    package: PackageDirectory,
    *,
    max_symlink_hops: int = DEFAULT_MAX_SYMLINK_HOPS,
    is_source: SourceClassifier | None = None,
) -> list[Problem]:
    """Check that symlinks and path references inside one package directory stay inside it."""
    classify = is_source or suffix_classifier()
    canonical_dir = package.path.resolve()
    problems: list[Problem] = []
    pending = [package.path]
    while pending:
        current = pending.pop()
        subdirs: list[Path] = []
        for entry in sorted(current.iterdir(), key=lambda item: os.fsencode(item.name)):
            subpath = entry.relative_to(package.path).as_posix()
            if entry.is_symlink():
                problems.extend(_check_symlink(package, canonical_dir, entry, subpath, max_symlink_hops))
            elif entry.is_dir():
                subdirs.append(entry)
            elif classify(entry):
                problems.extend(_check_source(package, canonical_dir, entry, subpath))
        pending.extend(reversed(subdirs))
    return problems
