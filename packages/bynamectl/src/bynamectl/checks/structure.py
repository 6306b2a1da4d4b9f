from __future__ import annotations

import os
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path

from .layout import PACKAGE_NAME_RE, SHARD_NAME_RE, ByNameLayout, shard_for_package
from .problems import (
    CaseSensitiveDuplicate,
    IncorrectShard,
    InvalidPackageName,
    InvalidShardName,
    PackageNixDir,
    PackageNixNonExistent,
    PackageNonDir,
    Problem,
    ShardNonDir,
)


@dataclass(frozen=True)
class PackageDirectory:
    name: str
    shard: str
    path: Path
    relative_dir: str
    valid_name: bool
    has_package_file: bool


@dataclass(frozen=True)
class StructureResult:
    problems: list[Problem]
    packages: list[PackageDirectory]


def _sorted_entries(path: Path) -> list[Path]:
    return sorted(path.iterdir(), key=lambda entry: os.fsencode(entry.name))


def _duplicates(relative_shard: str, entries: list[Path]) -> list[Problem]:
    problems: list[Problem] = []
    folded = sorted((entry.name for entry in entries), key=lambda name: (name.lower(), os.fsencode(name)))
    for _, group in groupby(folded, key=str.lower):
        members = list(group)
        for first, second in zip(members, members[1:]):
            problems.append(CaseSensitiveDuplicate(relative_shard_path=relative_shard, first=first, second=second))
    return problems


def _check_package(layout: ByNameLayout, shard_name: str, entry: Path) -> tuple[list[Problem], PackageDirectory | None]:
    name = entry.name
    relative_dir = f"{layout.relative_dir_for_shard(shard_name)}/{name}"
    if not entry.is_dir():
        return [PackageNonDir(relative_package_dir=relative_dir)], None
    problems: list[Problem] = []
    valid_name = PACKAGE_NAME_RE.match(name) is not None
    if not valid_name:
        problems.append(InvalidPackageName(relative_package_dir=relative_dir, package_name=name))
    elif shard_for_package(name) != shard_name:
        problems.append(IncorrectShard(relative_package_dir=relative_dir, correct_relative_package_dir=layout.relative_dir_for_package(name)))
    package_file = entry / layout.package_file
    has_package_file = False
    if not package_file.exists():
        problems.append(PackageNixNonExistent(relative_package_dir=relative_dir, package_file=layout.package_file))
    elif package_file.is_dir():
        problems.append(PackageNixDir(relative_package_dir=relative_dir, package_file=layout.package_file))
    else:
        has_package_file = True
    package = PackageDirectory(
        name=name,
        shard=shard_name,
        path=entry,
        relative_dir=relative_dir,
        valid_name=valid_name,
        has_package_file=has_package_file,
    )
    return problems, package


def check_structure(repo_root: Path, layout: ByNameLayout) -> StructureResult:
    """Validate shards and package directories of the by-name tree."""
    base = repo_root / layout.by_name_dir
    if not base.is_dir():
        return StructureResult(problems=[], packages=[])
    problems: list[Problem] = []
    packages: list[PackageDirectory] = []
    for shard in _sorted_entries(base):
        # README.md may sit next to the shards
        if shard.name == "README.md":
            continue
        relative_shard = layout.relative_dir_for_shard(shard.name)
        if not shard.is_dir():
            problems.append(ShardNonDir(relative_shard_path=relative_shard))
            continue
        if SHARD_NAME_RE.match(shard.name) is None:
            problems.append(InvalidShardName(relative_shard_path=relative_shard, shard_name=shard.name))
            continue
        entries = _sorted_entries(shard)
        problems.extend(_duplicates(relative_shard, entries))
        for entry in entries:
            entry_problems, package = _check_package(layout, shard.name, entry)
            problems.extend(entry_problems)
            if package is not None:
                packages.append(package)
    return StructureResult(problems=problems, packages=packages)
