"""
Errors raised by the mapper layer.

Construction-time errors (InvalidRelationDefinition, InvalidColumn raised
while declaring a schema) indicate a configuration bug. Per-call errors
surface immediately to the caller; nothing here is retried.
"""


class MapperError(Exception):
    """Base class for all mapper errors."""


class UnknownColumn(MapperError, LookupError):
    """Read of a field that is neither a column nor a relation."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(f'Specified column "{column}" is not in the row')

    def __str__(self) -> str:
        return self.args[0]


class InvalidColumn(MapperError, ValueError):
    """Unset (or declaration) of a field that is not a schema column."""

    def __init__(self, column: str, message: str = None):
        self.column = column
        super().__init__(message or f'Specified column "{column}" is not a schema column')


class InvalidRelationDefinition(MapperError, ValueError):
    """Malformed relation descriptor."""


class UnknownRepository(MapperError, LookupError):
    """No repository is registered under the requested identifier."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"No repository registered for {name!r}")

    def __str__(self) -> str:
        return self.args[0]


class TableMismatch(MapperError, RuntimeError):
    """A statement targets a different table than the repository executing it."""


class RowNotFound(MapperError, RuntimeError):
    """A reload by primary key matched no row."""


class EntityDeleted(MapperError, RuntimeError):
    """A deleted entity was passed to a write operation."""


class RelationResolutionError(MapperError, RuntimeError):
    """A relation slot was read while it was already being resolved."""
