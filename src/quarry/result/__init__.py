"""Materialized query results: rows, mappers and collections."""

from .collection import Collection
from .mapper import ResultMapper
from .row import Row, TaggedValue, ValueKind

__all__ = [
    "Collection",
    "ResultMapper",
    "Row",
    "TaggedValue",
    "ValueKind",
]
