"""Query construction, placeholder rewriting and execution."""

from .binder import Fragment, QueryBinder, Section
from .builder import QueryBuilder
from .generator import SqlGenerator, occurrence_values, selected_fields, statement_type
from .parameters import MISSING, ParameterBag, WireType
from .processor import Processor, ResolvedQuery, StatementResult
from .types import CompiledSql, QueryType

__all__ = [
    "CompiledSql",
    "Fragment",
    "MISSING",
    "ParameterBag",
    "Processor",
    "QueryBinder",
    "QueryBuilder",
    "QueryType",
    "ResolvedQuery",
    "Section",
    "SqlGenerator",
    "StatementResult",
    "WireType",
    "occurrence_values",
    "selected_fields",
    "statement_type",
]
