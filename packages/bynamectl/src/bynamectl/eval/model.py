from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping


class ShapeKind(str, Enum):
    DIRECT = "direct"
    CALL_PACKAGE = "call-package"
    INTERNAL_HELPER = "internal-helper"
    OTHER = "other"


@dataclass(frozen=True)
class Location:
    file: str
    line: int
    column: int


@dataclass(frozen=True)
class DefinitionShape:
    """How an attribute is defined.

    ``path`` and ``empty_arg`` only carry meaning for ``call-package``; ``path`` is
    repository relative and ``None`` when the first argument is not a path literal.
    """

    kind: ShapeKind
    path: str | None = None
    empty_arg: bool = False


@dataclass(frozen=True)
class AttributeDefinition:
    name: str
    shape: DefinitionShape
    is_derivation: bool
    location: Location | None = None


class AttributeMap(Mapping[str, AttributeDefinition]):
    """Evaluated top-level attributes keyed by name, iterated in sorted order."""

    def __init__(self, definitions: Mapping[str, AttributeDefinition] | None = None) -> None:
        self._definitions = dict(definitions or {})

    def __getitem__(self, name: str) -> AttributeDefinition:
        return self._definitions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._definitions))

    def __len__(self) -> int:
        return len(self._definitions)

    def is_package_record(self, name: str) -> bool:
        definition = self._definitions.get(name)
        return definition is not None and definition.is_derivation
