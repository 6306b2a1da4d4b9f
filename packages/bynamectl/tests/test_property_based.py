from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from bynamectl.checks.layout import PACKAGE_NAME_RE, SHARD_NAME_RE, ByNameLayout, shard_for_package
from bynamectl.checks.nix_syntax import NixSource
from bynamectl.checks.problems import CaseSensitiveDuplicate
from bynamectl.checks.structure import check_structure
from tests.helpers import add_package

_NAME = r"[A-Za-z0-9_-]{1,12}"


@pytest.mark.unit
@given(st.from_regex(_NAME, fullmatch=True))
def test_shard_of_a_valid_name_is_a_valid_shard(name: str) -> None:
    assert PACKAGE_NAME_RE.match(name)
    assert SHARD_NAME_RE.match(shard_for_package(name))
    assert ByNameLayout().relative_dir_for_package(name).endswith(f"/{shard_for_package(name)}/{name}")


@pytest.mark.unit
@given(st.sets(st.from_regex(r"[a-z0-9_-]{1,12}", fullmatch=True), min_size=1, max_size=6))
@settings(deadline=None, max_examples=25)
def test_correctly_placed_packages_have_no_structure_problems(names: set[str]) -> None:
    with tempfile.TemporaryDirectory() as td:
        repo = Path(td)
        for name in names:
            add_package(repo, name)
        result = check_structure(repo, ByNameLayout())
        assert result.problems == []
        assert sorted(pkg.name for pkg in result.packages) == sorted(names)


@pytest.mark.unit
@given(
    st.from_regex(r"[a-z]{3,8}", fullmatch=True).flatmap(
        lambda base: st.sets(
            st.lists(st.booleans(), min_size=len(base), max_size=len(base)).map(
                lambda flags: "".join(c.upper() if up else c for c, up in zip(base, flags))
            ),
            min_size=1,
            max_size=4,
        )
    )
)
@settings(deadline=None, max_examples=25)
def test_case_variants_yield_one_duplicate_per_extra_member(variants: set[str]) -> None:
    with tempfile.TemporaryDirectory() as td:
        repo = Path(td)
        for name in variants:
            add_package(repo, name)
        problems = check_structure(repo, ByNameLayout()).problems
        assert all(isinstance(problem, CaseSensitiveDuplicate) for problem in problems)
        assert len(problems) == len(variants) - 1


@pytest.mark.unit
@given(st.text(alphabet="ab/.${}\"'#*\n <>~:;=", max_size=80))
@settings(deadline=None)
def test_path_scanner_is_total(text: str) -> None:
    source = NixSource(text)
    for token in source.path_tokens():
        assert 1 <= token.line <= text.count("\n") + 1
        assert text[token.offset : token.offset + len(token.text)] == token.text
