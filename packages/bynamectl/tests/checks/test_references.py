from __future__ import annotations

import errno
import os
from pathlib import Path

from bynamectl.checks.layout import ByNameLayout
from bynamectl.checks.problems import (
    OutsidePathReference,
    OutsideSymlink,
    PathInterpolation,
    SearchPath,
    UnresolvablePathReference,
    UnresolvableSymlink,
)
from bynamectl.checks.references import check_references, resolve_symlink, suffix_classifier
from bynamectl.checks.structure import PackageDirectory, check_structure
from tests.helpers import BY_NAME, add_package

FOO_DIR = f"{BY_NAME}/fo/foo"


def _package(repo: Path, name: str = "foo") -> PackageDirectory:
    (package,) = [pkg for pkg in check_structure(repo, ByNameLayout()).packages if pkg.name == name]
    return package


def test_contained_references_pass(repo: Path) -> None:
    package_dir = add_package(repo, "foo", "{ }: { src = ./src; patches = [ ./fix.patch ]; self = ./.; }\n")
    (package_dir / "src").mkdir()
    (package_dir / "fix.patch").write_text("", encoding="utf-8")
    (package_dir / "sub").mkdir()
    (package_dir / "sub/extra.nix").write_text("import ../package.nix\n", encoding="utf-8")
    os.symlink("package.nix", package_dir / "alias.nix")
    assert check_references(_package(repo)) == []


def test_symlink_pointing_outside(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    (repo / "outside.txt").write_text("", encoding="utf-8")
    os.symlink("../../../../outside.txt", package_dir / "link")
    assert check_references(_package(repo)) == [OutsideSymlink(relative_package_dir=FOO_DIR, subpath="link")]


def test_symlink_cycle_is_unresolvable(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    os.symlink("loop", package_dir / "loop")
    problems = check_references(_package(repo))
    assert len(problems) == 1
    problem = problems[0]
    assert isinstance(problem, UnresolvableSymlink)
    assert problem.subpath == "loop"
    assert problem.io_error.errno == errno.ELOOP
    assert problem.io_error.message.endswith(f"(os error {errno.ELOOP})")


def test_dangling_symlink_is_unresolvable(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    os.symlink("missing", package_dir / "dangling")
    (problem,) = check_references(_package(repo))
    assert isinstance(problem, UnresolvableSymlink)
    assert problem.io_error.errno == errno.ENOENT


def test_symlinked_directory_is_not_descended(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    other = repo / "other"
    other.mkdir()
    (other / "bad.nix").write_text("<nixpkgs>\n", encoding="utf-8")
    os.symlink("../../../../other", package_dir / "vendored")
    assert check_references(_package(repo)) == [OutsideSymlink(relative_package_dir=FOO_DIR, subpath="vendored")]


def test_bounded_symlink_hops(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    os.symlink("package.nix", package_dir / "c")
    os.symlink("c", package_dir / "b")
    os.symlink("b", package_dir / "a")
    assert resolve_symlink(package_dir / "a", 3) == (package_dir / "package.nix").resolve()
    problems = check_references(_package(repo), max_symlink_hops=2)
    assert [problem.subpath for problem in problems] == ["a"]
    assert isinstance(problems[0], UnresolvableSymlink)


def test_path_reference_kinds(repo: Path) -> None:
    (repo / "top.nix").write_text("", encoding="utf-8")
    add_package(
        repo,
        "foo",
        "{ name }:\n"
        "{\n"
        "  a = <nixpkgs/lib>;\n"
        "  b = ./${name}.nix;\n"
        "  c = ../../../../top.nix;\n"
        "  d = ./missing.nix;\n"
        "  e = \"${../../../../top.nix}\";\n"
        "}\n",
    )
    problems = check_references(_package(repo))
    common = {"relative_package_dir": FOO_DIR, "subpath": "package.nix"}
    assert problems[:3] == [
        SearchPath(**common, line=3, text="<nixpkgs/lib>"),
        PathInterpolation(**common, line=4, text="./${name}.nix"),
        OutsidePathReference(**common, line=5, text="../../../../top.nix"),
    ]
    assert isinstance(problems[3], UnresolvablePathReference)
    assert (problems[3].line, problems[3].text, problems[3].io_error.errno) == (6, "./missing.nix", errno.ENOENT)
    assert problems[4] == OutsidePathReference(**common, line=7, text="../../../../top.nix")
    assert len(problems) == 5


def test_nested_source_files_report_their_subpath(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    (package_dir / "nested/deeper").mkdir(parents=True)
    (package_dir / "nested/deeper/x.nix").write_text("\n<nixpkgs>\n", encoding="utf-8")
    assert check_references(_package(repo)) == [
        SearchPath(relative_package_dir=FOO_DIR, subpath="nested/deeper/x.nix", line=2, text="<nixpkgs>")
    ]


def test_classifier_limits_scanned_files(repo: Path) -> None:
    package_dir = add_package(repo, "foo")
    (package_dir / "notes.txt").write_text("see ../../../../top.nix\n", encoding="utf-8")
    assert check_references(_package(repo)) == []
    problems = check_references(_package(repo), is_source=suffix_classifier((".nix", ".txt")))
    assert [type(problem) for problem in problems] == [UnresolvablePathReference]


def test_update_operator_without_spaces_passes(repo: Path) -> None:
    add_package(repo, "foo", "{ a, b, pkgs }:\n{ x = a//b; y = { } //pkgs.x; }\n")
    assert check_references(_package(repo)) == []
