"""Query types shared by the builder, generator and processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class QueryType(str, Enum):
    """Logical statement kind of a builder's query."""

    NONE = "none"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_write(self) -> bool:
        return self in (QueryType.INSERT, QueryType.UPDATE, QueryType.DELETE)


@dataclass(frozen=True)
class CompiledSql:
    """
    Output of the generator.

    ``query`` holds positional markers in place of named placeholders.
    ``parameters`` is the binding order: one placeholder name per
    occurrence in the original text, left to right.
    """

    query: str
    parameters: list[str] = field(default_factory=list)

    @property
    def placeholder_names(self) -> list[str]:
        """Distinct names in first-occurrence order."""
        return list(dict.fromkeys(self.parameters))


__all__ = [
    "QueryType",
    "CompiledSql",
]
