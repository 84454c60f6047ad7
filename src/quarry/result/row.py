"""Typed result rows.

Without a result mapper each fetched row becomes a :class:`Row`: an ordered,
read-only mapping from column name to value. ``tagged()`` exposes the value
together with its :class:`ValueKind`, so consumers can branch on the shape
of a value without isinstance chains of their own.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Shape of a column value."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    NULL = "null"
    BYTES = "bytes"
    OTHER = "other"


@dataclass(frozen=True)
class TaggedValue:
    """A column value and its kind."""

    kind: ValueKind
    value: Any

    @classmethod
    def of(cls, value: Any) -> TaggedValue:
        if value is None:
            kind = ValueKind.NULL
        elif isinstance(value, int):
            kind = ValueKind.INTEGER
        elif isinstance(value, float):
            kind = ValueKind.FLOAT
        elif isinstance(value, str):
            kind = ValueKind.STRING
        elif isinstance(value, (bytes, bytearray, memoryview)):
            kind = ValueKind.BYTES
        else:
            kind = ValueKind.OTHER
        return cls(kind, value)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL


class Row(Mapping[str, Any]):
    """Ordered column → value mapping for one result row."""

    __slots__ = ("_values",)

    def __init__(self, columns: Sequence[str], values: Sequence[Any]):
        self._values: dict[str, Any] = dict(zip(columns, values))

    def __getitem__(self, column: str) -> Any:
        return self._values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def tagged(self, column: str) -> TaggedValue:
        """Value of ``column`` with its kind (KeyError when absent)."""
        return TaggedValue.of(self._values[column])

    def tagged_items(self) -> list[tuple[str, TaggedValue]]:
        return [(column, TaggedValue.of(value)) for column, value in self._values.items()]

    def columns(self) -> list[str]:
        return list(self._values)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"


__all__ = [
    "Row",
    "TaggedValue",
    "ValueKind",
]
