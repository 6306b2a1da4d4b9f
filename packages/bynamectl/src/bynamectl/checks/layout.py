from __future__ import annotations

import re
from dataclasses import dataclass

SHARD_NAME_RE = re.compile(r"^[a-z0-9_-]{1,2}$")
PACKAGE_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


def shard_for_package(package_name: str) -> str:
    return package_name.lower()[:2]


@dataclass(frozen=True)
class ByNameLayout:
    """Relative locations inside the by-name tree.

    All paths are POSIX strings relative to the repository root.
    """

    by_name_dir: str = "pkgs/by-name"
    package_file: str = "package.nix"

    def relative_dir_for_shard(self, shard_name: str) -> str:
        return f"{self.by_name_dir}/{shard_name}"

    def relative_dir_for_package(self, package_name: str) -> str:
        return f"{self.relative_dir_for_shard(shard_for_package(package_name))}/{package_name}"

    def relative_file_for_package(self, package_name: str) -> str:
        return f"{self.relative_dir_for_package(package_name)}/{self.package_file}"

    @property
    def readme(self) -> str:
        return f"{self.by_name_dir}/README.md"
