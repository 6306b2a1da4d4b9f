from __future__ import annotations

from bynamectl.checks.aggregate import aggregate
from bynamectl.checks.problems import (
    IncorrectShard,
    PackageNixNonExistent,
    SearchPath,
    UndefinedAttr,
    problem_path,
)


def test_empty_report_is_ok() -> None:
    report = aggregate([], [])
    assert report.ok
    assert report.count == 0
    assert report.problems == ()


def test_order_is_path_then_phase_then_discovery() -> None:
    search_a = SearchPath(relative_package_dir="pkgs/by-name/fo/foo", subpath="a.nix", line=1, text="<a>")
    search_b = SearchPath(relative_package_dir="pkgs/by-name/fo/foo", subpath="b.nix", line=1, text="<b>")
    undefined = UndefinedAttr(relative_package_file="pkgs/by-name/fo/foo/package.nix", package_name="foo")
    missing = PackageNixNonExistent(relative_package_dir="pkgs/by-name/fo/foo", package_file="package.nix")
    shard = IncorrectShard(relative_package_dir="pkgs/by-name/ba/foo", correct_relative_package_dir="pkgs/by-name/fo/foo")

    report = aggregate([missing, shard], [undefined], [search_b], [search_a])

    assert report.problems == (shard, missing, undefined, search_b, search_a)
    assert report.count == 5
    assert not report.ok


def test_duplicates_are_kept() -> None:
    undefined = UndefinedAttr(relative_package_file="pkgs/by-name/fo/foo/package.nix", package_name="foo")
    assert aggregate([undefined], [undefined]).count == 2


def test_problem_path_falls_back_to_package_file_directory() -> None:
    undefined = UndefinedAttr(relative_package_file="pkgs/by-name/fo/foo/package.nix", package_name="foo")
    assert problem_path(undefined) == "pkgs/by-name/fo/foo"
