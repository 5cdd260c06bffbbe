"""
Domain package for rowgate.

Exports the Record type, the Table gateway, the Query helper base and the
pure condition/pagination helpers they are built on.
"""

from rowgate.domain.conditions import ALLOWED_OPERATORS, Clause, compile_conditions
from rowgate.domain.pagination import PageMeta, build_page_meta
from rowgate.domain.query import Query
from rowgate.domain.record import Field, Record
from rowgate.domain.table import Table

__all__ = [
    "ALLOWED_OPERATORS",
    "Clause",
    "Field",
    "PageMeta",
    "Query",
    "Record",
    "Table",
    "build_page_meta",
    "compile_conditions",
]
