"""Identifier index for dataset cross-references.

Dataset elements refer to each other by author-chosen string identifiers.
The index turns those identifiers into dense integer positions, one
numbering per element kind, so that evaluation only ever touches plain
array indices.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

from aerotab.errors import DuplicateIdError, UnresolvedReferenceError


class ElementKind(str, Enum):
    """Kinds of dataset element that carry identifiers."""

    VARIABLE = "variable"
    BREAKPOINT = "breakpoint"
    GRIDDED_TABLE = "gridded_table"
    UNGRIDDED_TABLE = "ungridded_table"
    FUNCTION = "function"
    MODIFICATION = "modification"
    PROVENANCE = "provenance"

    @classmethod
    def from_alias(cls, value: str) -> ElementKind:
        """Normalize DAVE-ML element names into one ``ElementKind``."""
        normalized = str(value).strip().lower()
        aliases: dict[str, ElementKind] = {
            "variable": cls.VARIABLE,
            "variabledef": cls.VARIABLE,
            "breakpoint": cls.BREAKPOINT,
            "breakpointdef": cls.BREAKPOINT,
            "gridded_table": cls.GRIDDED_TABLE,
            "griddedtabledef": cls.GRIDDED_TABLE,
            "ungridded_table": cls.UNGRIDDED_TABLE,
            "ungriddedtabledef": cls.UNGRIDDED_TABLE,
            "function": cls.FUNCTION,
            "modification": cls.MODIFICATION,
            "modificationrecord": cls.MODIFICATION,
            "provenance": cls.PROVENANCE,
        }
        if normalized not in aliases:
            allowed = [k.value for k in cls]
            raise ValueError(f"Unsupported element kind '{value}'. Allowed: {allowed}")
        return aliases[normalized]


class IdentifierIndex:
    """Bidirectional identifier/position mapping, one numbering per kind.

    Positions are handed out densely in registration order and never
    change. There is no removal: a loaded dataset is immutable.

    Example:
        >>> index = IdentifierIndex()
        >>> index.register(ElementKind.BREAKPOINT, "ALPHA1")
        0
        >>> index.resolve(ElementKind.BREAKPOINT, "ALPHA1")
        0
        >>> index.resolve(ElementKind.BREAKPOINT, "BETA1") is None
        True
    """

    def __init__(self) -> None:
        """Initialize an empty index."""
        self._positions: dict[ElementKind, dict[str, int]] = {kind: {} for kind in ElementKind}
        self._ids: dict[ElementKind, list[str]] = {kind: [] for kind in ElementKind}

    def register(self, kind: ElementKind, element_id: str) -> int:
        """Register an identifier and return its position.

        Args:
            kind: Element kind
            element_id: Identifier, unique within ``kind``

        Returns:
            Dense position of the new element

        Raises:
            DuplicateIdError: If ``element_id`` is already registered for ``kind``
        """
        kind = ElementKind(kind)
        positions = self._positions[kind]
        if element_id in positions:
            raise DuplicateIdError(kind, element_id)
        position = len(self._ids[kind])
        positions[element_id] = position
        self._ids[kind].append(element_id)
        return position

    def resolve(self, kind: ElementKind, element_id: str) -> int | None:
        """Return the position of an identifier, or None when absent."""
        return self._positions[ElementKind(kind)].get(element_id)

    def resolve_or_fail(
        self, kind: ElementKind, element_id: str, referrer: str | None = None
    ) -> int:
        """Return the position of an identifier that must exist.

        Args:
            kind: Element kind
            element_id: Identifier to look up
            referrer: Identifier of the element holding the reference, for
                error reporting

        Raises:
            UnresolvedReferenceError: If the identifier was never registered
        """
        position = self.resolve(kind, element_id)
        if position is None:
            raise UnresolvedReferenceError(ElementKind(kind), element_id, referrer)
        return position

    def id_of(self, kind: ElementKind, position: int) -> str:
        """Return the identifier registered at ``position``.

        Raises:
            IndexError: If no element occupies ``position``
        """
        ids = self._ids[ElementKind(kind)]
        if not 0 <= position < len(ids):
            msg = f"No {ElementKind(kind).value} at position {position}"
            raise IndexError(msg)
        return ids[position]

    def contains(self, kind: ElementKind, element_id: str) -> bool:
        """Check whether an identifier is registered for ``kind``."""
        return element_id in self._positions[ElementKind(kind)]

    def count(self, kind: ElementKind) -> int:
        """Return the number of identifiers registered for ``kind``."""
        return len(self._ids[ElementKind(kind)])

    def ids(self, kind: ElementKind) -> Iterator[str]:
        """Iterate identifiers of ``kind`` in position order."""
        return iter(self._ids[ElementKind(kind)])

    def unique_id(self, kind: ElementKind, stem: str) -> str:
        """Return an identifier derived from ``stem`` not yet used for ``kind``."""
        candidate = stem
        suffix = 1
        while self.contains(kind, candidate):
            candidate = f"{stem}_{suffix}"
            suffix += 1
        return candidate

    def summary(self) -> dict[str, Any]:
        """Return identifier counts per kind."""
        return {kind.value: len(ids) for kind, ids in self._ids.items()}
