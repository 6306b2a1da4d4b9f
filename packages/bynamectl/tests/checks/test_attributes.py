from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from bynamectl.checks.attributes import INTERNAL_HELPER, check_attributes
from bynamectl.checks.layout import ByNameLayout
from bynamectl.checks.problems import (
    CannotDetermineAttributeLocation,
    InternalCallPackageUsed,
    MovedOutOfByName,
    NewPackageNotUsingByName,
    NonDerivation,
    NonSyntacticCallPackage,
    UndefinedAttr,
    WrongCallPackage,
    WrongCallPackagePath,
)
from bynamectl.checks.structure import check_structure
from bynamectl.core.errors import EvaluationError
from bynamectl.eval.history import FileHistory, NoHistory
from bynamectl.eval.loader import attribute_map_from_payload
from tests.helpers import BY_NAME, add_package, attributes_payload, call_package, direct

LAYOUT = ByNameLayout()
ALL_PACKAGES = "pkgs/top-level/all-packages.nix"
FOO_FILE = f"{BY_NAME}/fo/foo/package.nix"


def _check(repo: Path, attributes: dict[str, dict[str, Any]], history=None) -> list:
    packages = check_structure(repo, LAYOUT).packages
    attribute_map = attribute_map_from_payload(attributes_payload(attributes), source="test")
    return check_attributes(repo, LAYOUT, packages, attribute_map, history or NoHistory())


def _top_level(repo: Path, *lines: str) -> None:
    (repo / ALL_PACKAGES).write_text("{\n" + "".join(f"{line}\n" for line in lines) + "}\n", encoding="utf-8")


def test_automatic_definition_passes(repo: Path) -> None:
    add_package(repo, "foo")
    assert _check(repo, {"foo": direct()}) == []


def test_undefined_attribute(repo: Path) -> None:
    add_package(repo, "foo")
    assert _check(repo, {}) == [UndefinedAttr(relative_package_file=FOO_FILE, package_name="foo")]


def test_non_derivation(repo: Path) -> None:
    add_package(repo, "foo")
    assert _check(repo, {"foo": direct(is_derivation=False)}) == [NonDerivation(relative_package_file=FOO_FILE, package_name="foo")]


def test_manual_call_package_with_arguments_passes(repo: Path) -> None:
    add_package(repo, "foo")
    _top_level(repo, "  foo = callPackage ../by-name/fo/foo/package.nix { inherit bar; };")
    assert _check(repo, {"foo": call_package(ALL_PACKAGES, 2, 3)}) == []


def test_manual_call_package_with_empty_arguments(repo: Path) -> None:
    add_package(repo, "foo")
    _top_level(repo, "  foo = callPackage ../by-name/fo/foo/package.nix { };")
    assert _check(repo, {"foo": call_package(ALL_PACKAGES, 2, 3, empty_arg=True)}) == [
        WrongCallPackage(relative_package_file=FOO_FILE, package_name="foo")
    ]


def test_wrong_call_package_path(repo: Path) -> None:
    add_package(repo, "foo")
    _top_level(repo, "  foo = callPackage ./wrong/path.nix { };")
    assert _check(repo, {"foo": call_package(ALL_PACKAGES, 2, 3)}) == [
        WrongCallPackagePath(
            package_name="foo",
            relative_package_dir=f"{BY_NAME}/fo/foo",
            file=ALL_PACKAGES,
            line=2,
            column=3,
            actual_path="pkgs/top-level/wrong/path.nix",
            expected_path=FOO_FILE,
        )
    ]


def test_non_syntactic_call_package(repo: Path) -> None:
    add_package(repo, "foo")
    definition = "foo = if true then callPackage ../by-name/fo/foo/package.nix { } else null;"
    _top_level(repo, f"  {definition}")
    assert _check(repo, {"foo": call_package(ALL_PACKAGES, 2, 3)}) == [
        NonSyntacticCallPackage(
            package_name="foo",
            relative_package_dir=f"{BY_NAME}/fo/foo",
            relative_package_file=FOO_FILE,
            file=ALL_PACKAGES,
            line=2,
            column=3,
            definition=definition,
        )
    ]


def test_other_shape_is_non_syntactic(repo: Path) -> None:
    add_package(repo, "foo")
    _top_level(repo, "  foo = callPackage ../by-name/fo/foo/package.nix { inherit bar; };")
    attribute = call_package(ALL_PACKAGES, 2, 3)
    attribute["shape"] = {"kind": "other"}
    (problem,) = _check(repo, {"foo": attribute})
    assert isinstance(problem, NonSyntacticCallPackage)


def test_missing_location(repo: Path) -> None:
    add_package(repo, "foo")
    attribute = call_package(ALL_PACKAGES, 2, 3)
    attribute["location"] = None
    assert _check(repo, {"foo": attribute}) == [
        CannotDetermineAttributeLocation(attr_name="foo", relative_package_dir=f"{BY_NAME}/fo/foo")
    ]


def test_internal_helper_in_tree(repo: Path) -> None:
    add_package(repo, "foo")
    attribute = {"shape": {"kind": "internal-helper"}, "is_derivation": True}
    assert _check(repo, {"foo": attribute}) == [
        InternalCallPackageUsed(attr_name="foo", relative_package_dir=f"{BY_NAME}/fo/foo", helper=INTERNAL_HELPER)
    ]


def test_internal_helper_outside_tree(repo: Path) -> None:
    attribute = {"shape": {"kind": "internal-helper"}, "is_derivation": True}
    assert _check(repo, {"bar": attribute}) == [
        InternalCallPackageUsed(attr_name="bar", relative_package_dir=f"{BY_NAME}/ba/bar", helper=INTERNAL_HELPER)
    ]


def _manual_bar() -> dict[str, Any]:
    return call_package(ALL_PACKAGES, 2, 3, path="pkgs/tools/bar/default.nix", empty_arg=True)


def test_package_moved_out_of_by_name(repo: Path) -> None:
    history = FileHistory(by_name=frozenset({"bar"}))
    assert _check(repo, {"bar": _manual_bar()}, history) == [
        MovedOutOfByName(
            package_name="bar",
            relative_package_file=f"{BY_NAME}/ba/bar/package.nix",
            call_package_path="pkgs/tools/bar/default.nix",
            empty_arg=True,
        )
    ]


def test_new_package_not_using_by_name(repo: Path) -> None:
    history = FileHistory(manual=frozenset({"baz"}))
    assert _check(repo, {"bar": _manual_bar()}, history) == [
        NewPackageNotUsingByName(
            package_name="bar",
            relative_package_file=f"{BY_NAME}/ba/bar/package.nix",
            readme=f"{BY_NAME}/README.md",
            call_package_path="pkgs/tools/bar/default.nix",
            empty_arg=True,
        )
    ]


def test_existing_manual_definitions_are_grandfathered(repo: Path) -> None:
    assert _check(repo, {"bar": _manual_bar()}) == []
    assert _check(repo, {"bar": _manual_bar()}, FileHistory(manual=frozenset({"bar"}))) == []


def test_invalid_package_names_are_not_attributes(repo: Path) -> None:
    add_package(repo, "fo.o")
    assert _check(repo, {}) == []


def test_unreadable_location_is_an_evaluation_error(repo: Path) -> None:
    add_package(repo, "foo")
    with pytest.raises(EvaluationError):
        _check(repo, {"foo": call_package("pkgs/top-level/missing.nix", 2, 3)})
