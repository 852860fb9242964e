from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from psycopg import sql


@dataclass(frozen=True)
class Table:
    """A table name, optionally schema-qualified and aliased."""

    name: str
    schema: Optional[str] = None
    alias: Optional[str] = None

    @classmethod
    def parse(cls, value: Any) -> "Table":
        """
        Build a Table from the forms repositories declare.

        Accepts a Table, a plain name ("posts"), a qualified name
        ("blog.posts"), or a single-entry mapping of alias to name
        ({"p": "posts"}).
        """
        if isinstance(value, Table):
            return value
        if isinstance(value, Mapping):
            if len(value) != 1:
                raise ValueError(f"Aliased table must have exactly one entry: {value!r}")
            alias, name = next(iter(value.items()))
            return replace(cls.parse(name), alias=alias)
        if isinstance(value, str):
            text = value.strip()
            if not text:
                raise ValueError("Table name must not be empty")
            schema, _, name = text.rpartition(".")
            return cls(name=name, schema=schema or None)
        raise TypeError(f"Cannot build a table from {type(value).__name__}")

    @property
    def reference(self) -> str:
        """Name used to qualify this table's columns in a statement."""
        return self.alias or self.name

    def qualify(self, column: str) -> str:
        return f"{self.reference}.{column}"

    def unaliased(self) -> "Table":
        return replace(self, alias=None)

    def identifier(self) -> sql.Composable:
        parts = (self.schema, self.name) if self.schema else (self.name,)
        ident = sql.Identifier(*parts)
        if self.alias:
            return sql.SQL("{} AS {}").format(ident, sql.Identifier(self.alias))
        return ident

    def __str__(self) -> str:
        name = f"{self.schema}.{self.name}" if self.schema else self.name
        return f"{name} AS {self.alias}" if self.alias else name
