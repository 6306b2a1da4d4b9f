from __future__ import annotations

from pathlib import Path

from ..core.errors import EvaluationError
from ..eval.history import HistoryOracle, HistoryStatus
from ..eval.model import AttributeDefinition, AttributeMap, ShapeKind
from .layout import ByNameLayout
from .nix_syntax import NixSource, match_call_package, resolve_relative
from .problems import (
    CannotDetermineAttributeLocation,
    InternalCallPackageUsed,
    MovedOutOfByName,
    NewPackageNotUsingByName,
    NonDerivation,
    NonSyntacticCallPackage,
    Problem,
    UndefinedAttr,
    WrongCallPackage,
    WrongCallPackagePath,
)
from .structure import PackageDirectory

INTERNAL_HELPER = "_internalCallByNamePackageFile"


class _SourceCache:
    def __init__(self, repo_root: Path) -> None:
        self._repo_root = repo_root
        self._sources: dict[str, NixSource] = {}

    def get(self, relative_file: str) -> NixSource:
        source = self._sources.get(relative_file)
        if source is None:
            path = self._repo_root / relative_file
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                raise EvaluationError(f"evaluator reported a location in unreadable file {relative_file}: {exc.strerror or exc}") from exc
            source = NixSource(text)
            self._sources[relative_file] = source
        return source


def _names_match(attrpath: str, name: str) -> bool:
    return attrpath in (name, f'"{name}"')


def _check_manual_definition(
    package: PackageDirectory,
    definition: AttributeDefinition,
    layout: ByNameLayout,
    sources: _SourceCache,
) -> list[Problem]:
    name = package.name
    relative_package_file = f"{package.relative_dir}/{layout.package_file}"
    location = definition.location
    if location is None:
        return [CannotDetermineAttributeLocation(attr_name=name, relative_package_dir=package.relative_dir)]
    source = sources.get(location.file)
    binding = source.binding_at(location.line, location.column)
    call = None
    if binding is not None and _names_match(binding.attrpath, name):
        call = match_call_package(binding.value)
    if definition.shape.kind != ShapeKind.CALL_PACKAGE or call is None:
        raw = binding.definition if binding is not None else source.line_text_from(location.line, location.column)
        return [
            NonSyntacticCallPackage(
                package_name=name,
                relative_package_dir=package.relative_dir,
                relative_package_file=relative_package_file,
                file=location.file,
                line=location.line,
                column=location.column,
                definition=raw,
            )
        ]
    expected = layout.relative_file_for_package(name)
    actual = resolve_relative(location.file, call.path)
    if actual != expected:
        return [
            WrongCallPackagePath(
                package_name=name,
                relative_package_dir=package.relative_dir,
                file=location.file,
                line=location.line,
                column=location.column,
                actual_path=actual,
                expected_path=expected,
            )
        ]
    if call.empty_arg:
        return [WrongCallPackage(relative_package_file=relative_package_file, package_name=name)]
    return []


def _check_package(
    package: PackageDirectory,
    attributes: AttributeMap,
    layout: ByNameLayout,
    sources: _SourceCache,
) -> list[Problem]:
    relative_package_file = f"{package.relative_dir}/{layout.package_file}"
    definition = attributes.get(package.name)
    if definition is None:
        return [UndefinedAttr(relative_package_file=relative_package_file, package_name=package.name)]
    problems: list[Problem] = []
    if not definition.is_derivation:
        problems.append(NonDerivation(relative_package_file=relative_package_file, package_name=package.name))
    kind = definition.shape.kind
    if kind == ShapeKind.INTERNAL_HELPER:
        problems.append(InternalCallPackageUsed(attr_name=package.name, relative_package_dir=package.relative_dir, helper=INTERNAL_HELPER))
    elif kind in (ShapeKind.CALL_PACKAGE, ShapeKind.OTHER):
        problems.extend(_check_manual_definition(package, definition, layout, sources))
    return problems


def _check_unbacked(definition: AttributeDefinition, layout: ByNameLayout, history: HistoryOracle) -> list[Problem]:
    name = definition.name
    shape = definition.shape
    if shape.kind == ShapeKind.INTERNAL_HELPER:
        return [InternalCallPackageUsed(attr_name=name, relative_package_dir=layout.relative_dir_for_package(name), helper=INTERNAL_HELPER)]
    if shape.kind != ShapeKind.CALL_PACKAGE:
        return []
    status = history.status(name)
    if status == HistoryStatus.BY_NAME:
        return [
            MovedOutOfByName(
                package_name=name,
                relative_package_file=layout.relative_file_for_package(name),
                call_package_path=shape.path,
                empty_arg=shape.empty_arg,
            )
        ]
    # only packages can move into the tree
    if status == HistoryStatus.ABSENT and definition.is_derivation:
        return [
            NewPackageNotUsingByName(
                package_name=name,
                relative_package_file=layout.relative_file_for_package(name),
                readme=layout.readme,
                call_package_path=shape.path,
                empty_arg=shape.empty_arg,
            )
        ]
    return []


def check_attributes(
    repo_root: Path,
    layout: ByNameLayout,
    packages: list[PackageDirectory],
    attributes: AttributeMap,
    history: HistoryOracle,
) -> list[Problem]:
    """Cross-check package directories against the evaluated attribute set."""
    sources = _SourceCache(repo_root)
    problems: list[Problem] = []
    backed: set[str] = set()
    for package in packages:
        if not package.valid_name:
            continue
        backed.add(package.name)
        problems.extend(_check_package(package, attributes, layout, sources))
    for name in attributes:
        if name not in backed:
            problems.extend(_check_unbacked(attributes[name], layout, history))
    return problems
