"""
Result collection: the read path's return value.

A ``Collection`` owns the materialized rows (``Row`` objects or result
mapper instances) of one query plus the ``StatementResult`` describing the
statement that produced them.

Accessors (``first``, ``last``, ``offset``, ``size``, ``only``, ``max``,
``min``, ``map``, ``invoke``) leave the items alone. The reshaping operations
(``add``, ``remove``, ``remove_where``, ``group_by``, ``where``,
``partition``, ``reset``, ``to_list``) replace the items in place and
return the same collection, so they chain::

    users.where({"active": 1}).group_by("team")

Keys:
    A ``key`` is a column/field name, or a callable taking one item.
    Names resolve through ``item[key]`` for mappings and ``getattr`` for
    mapper instances.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from quarry.result.mapper import ResultMapper
from quarry.result.row import Row

if TYPE_CHECKING:
    from quarry.query.processor import StatementResult

Key = str | Callable[[Any], Any]
Conditions = Mapping[str, Any] | Callable[[Any], bool]

_ABSENT = object()
_REQUIRED = object()


def _value(item: Any, key: Key, default: Any = _REQUIRED) -> Any:
    if callable(key):
        return key(item)
    if isinstance(item, Mapping):
        if key in item:
            return item[key]
    elif hasattr(item, key):
        return getattr(item, key)
    if default is _REQUIRED:
        raise KeyError(key)
    return default


def _matches(item: Any, conditions: Conditions) -> bool:
    if callable(conditions):
        return bool(conditions(item))
    return all(_value(item, key, _ABSENT) == expected for key, expected in conditions.items())


def _plain(item: Any) -> Any:
    if isinstance(item, Row):
        return item.to_dict()
    if isinstance(item, ResultMapper):
        return item.to_dict()
    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], list):
        return (item[0], [_plain(element) for element in item[1]])
    if isinstance(item, list):
        return [_plain(element) for element in item]
    return item


class Collection:
    """Ordered, chainable view over the rows of one query."""

    def __init__(self, items: list[Any] | None = None, statement: StatementResult | None = None):
        self._items: list[Any] = list(items or [])
        self._statement = statement
        self._cursor: int | None = None

    # ── Sequence protocol ────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Any:
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Collection(size={len(self._items)})"

    # ── Statement metadata ───────────────────────────────────────

    @property
    def statement(self) -> StatementResult | None:
        return self._statement

    @property
    def is_raw(self) -> bool:
        return bool(self._statement and self._statement.is_raw)

    # ── Accessors ────────────────────────────────────────────────

    def all(self) -> list[Any]:
        return list(self._items)

    def size(self) -> int:
        return len(self._items)

    def first(self) -> Any:
        """First item (or None); ``next()`` continues from here."""
        if not self._items:
            return None
        self._cursor = 0
        return self._items[0]

    def next(self) -> Any:
        """Item after the one last returned by first/next/last, or None."""
        if self._cursor is None or self._cursor + 1 >= len(self._items):
            return None
        self._cursor += 1
        return self._items[self._cursor]

    def last(self) -> Any:
        if not self._items:
            return None
        self._cursor = len(self._items) - 1
        return self._items[-1]

    def offset(self, index: int = 0) -> Any:
        """Item at ``index`` or None."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def only(self, *columns: str) -> Collection:
        """New collection of rows restricted to ``columns``."""
        rows = []
        for item in self._items:
            present = [c for c in columns if _value(item, c, _ABSENT) is not _ABSENT]
            rows.append(Row(present, [_value(item, c) for c in present]))
        return Collection(rows, statement=self._statement)

    def map(self, callback: Callable[..., Any], *extra: Any) -> list[Any]:
        """Results of ``callback(item, index, *extra)`` for every item."""
        return [callback(item, index, *extra) for index, item in enumerate(self._items)]

    def invoke(self, callback: Callable[..., Any], *extra: Any) -> Collection:
        """Call ``callback(item, index, *extra)`` on every item for its side effects.

        Return values are discarded; the collection is returned unchanged so
        the call chains.
        """
        if not callable(callback):
            raise TypeError(f"invoke() needs a callable, got {callback!r}")
        for index, item in enumerate(self._items):
            callback(item, index, *extra)
        return self

    def max(self, key: Key) -> Any:
        values = [_value(item, key) for item in self._items]
        return max(values) if values else None

    def min(self, key: Key) -> Any:
        values = [_value(item, key) for item in self._items]
        return min(values) if values else None

    # ── Reshaping (in place, chainable) ──────────────────────────

    def add(self, item: Any) -> Collection:
        self._items.append(item)
        return self

    def remove(self, index: int) -> Collection:
        """Drop the item at ``index``; out-of-range indexes are ignored."""
        if -len(self._items) <= index < len(self._items):
            del self._items[index]
        return self

    def remove_where(self, conditions: Conditions) -> Collection:
        self._items = [item for item in self._items if not _matches(item, conditions)]
        return self

    def where(self, conditions: Conditions) -> Collection:
        """Keep only items matching every condition."""
        self._items = [item for item in self._items if _matches(item, conditions)]
        return self

    def group_by(self, key: Key) -> Collection:
        """Replace items with ``(key_value, [items])`` pairs in first-seen order.

        Items without the key are dropped.
        """
        groups: dict[Any, list[Any]] = {}
        for item in self._items:
            value = _value(item, key, _ABSENT)
            if value is _ABSENT:
                continue
            groups.setdefault(value, []).append(item)
        self._items = list(groups.items())
        return self

    def partition(self, size: int) -> Collection:
        """Replace items with consecutive chunks of ``size`` items."""
        if size < 1:
            raise ValueError("partition size must be at least 1")
        self._items = [self._items[i : i + size] for i in range(0, len(self._items), size)]
        return self

    def reset(self) -> Collection:
        self._items = []
        self._cursor = None
        return self

    def to_list(self) -> Collection:
        """Replace rows and mapper instances with plain dicts."""
        self._items = [_plain(item) for item in self._items]
        return self


__all__ = [
    "Collection",
]
