"""
Query

Statement builders used by repositories to talk to PostgreSQL. Statements
keep their raw state (table, predicates, values) for inspection and compile
to psycopg.sql compositions plus a parameter list.
"""

from tablemapper.query.predicates import (
    ColumnEquals,
    Compare,
    Comparison,
    In,
    OrderBy,
    Predicate,
    Raw,
    Where,
    parse_order,
)
from tablemapper.query.statements import Delete, Insert, Join, Select, Sql, Update
from tablemapper.query.table import Table

__all__ = [
    "ColumnEquals",
    "Compare",
    "Comparison",
    "Delete",
    "In",
    "Insert",
    "Join",
    "OrderBy",
    "Predicate",
    "Raw",
    "Select",
    "Sql",
    "Table",
    "Update",
    "Where",
    "parse_order",
]
