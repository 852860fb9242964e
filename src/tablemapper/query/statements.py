from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from psycopg import sql

from tablemapper.query.predicates import ColumnEquals, Where, column_identifier, parse_order
from tablemapper.query.table import Table

JOIN_INNER = "inner"
JOIN_LEFT = "left"
JOIN_RIGHT = "right"
JOIN_OUTER = "outer"

JOIN_SQL = {
    JOIN_INNER: "INNER JOIN",
    JOIN_LEFT: "LEFT JOIN",
    JOIN_RIGHT: "RIGHT JOIN",
    JOIN_OUTER: "FULL OUTER JOIN",
}


def _is_column_pairs(on) -> bool:
    return (
        isinstance(on, (list, tuple))
        and bool(on)
        and all(isinstance(pair, tuple) and len(pair) == 2 for pair in on)
    )


@dataclass
class Join:
    """
    A joined table.

    `on` is raw SQL text, a Where, or a list of (left, right) column pairs
    that are compared for equality and combined with AND. `columns` lists the
    joined table's columns to select; the default selects none.
    """

    table: Table
    on: Where
    columns: Tuple[str, ...] = ()
    type: str = JOIN_INNER

    def __post_init__(self):
        self.table = Table.parse(self.table)
        if self.type not in JOIN_SQL:
            raise ValueError(f"Unsupported join type: {self.type!r}")
        if _is_column_pairs(self.on):
            self.on = Where(*[ColumnEquals(left, right) for left, right in self.on])
        elif not isinstance(self.on, Where):
            self.on = Where(self.on)
        self.columns = tuple(self.columns)


class Statement:
    """Base for statements bound to a single table."""

    def __init__(self, table):
        self.table = Table.parse(table)

    def compile(self) -> Tuple[sql.Composed, list]:
        raise NotImplementedError

    def get_raw_state(self) -> Dict[str, Any]:
        return {"table": self.table}


class Select(Statement):
    def __init__(self, table, columns: Optional[Sequence[str]] = None):
        super().__init__(table)
        self.columns = tuple(columns) if columns else None
        self.where_clause = Where()
        self.order_by = []
        self.joins: List[Join] = []
        self.limit_value: Optional[int] = None

    def where(self, condition) -> "Select":
        self.where_clause.add(condition)
        return self

    def order(self, order) -> "Select":
        self.order_by.extend(parse_order(order))
        return self

    def join(self, table, on, columns: Sequence[str] = (), type: str = JOIN_INNER) -> "Select":
        self.joins.append(Join(table, on, tuple(columns), type))
        return self

    def limit(self, limit: Optional[int]) -> "Select":
        self.limit_value = limit
        return self

    def compile(self) -> Tuple[sql.Composed, list]:
        params: list = []
        reference = self.table.reference

        if self.columns is None:
            selected = [sql.SQL("{}.*").format(sql.Identifier(reference))]
        else:
            selected = [
                column_identifier(c if "." in c else f"{reference}.{c}") for c in self.columns
            ]
        for join in self.joins:
            selected.extend(column_identifier(join.table.qualify(c)) for c in join.columns)

        parts = [
            sql.SQL("SELECT {} FROM {}").format(sql.SQL(", ").join(selected), self.table.identifier())
        ]
        for join in self.joins:
            parts.append(
                sql.SQL(" {} {} ON {}").format(
                    sql.SQL(JOIN_SQL[join.type]), join.table.identifier(), join.on.compile(params)
                )
            )
        if self.where_clause:
            parts.append(sql.SQL(" WHERE {}").format(self.where_clause.compile(params)))
        if self.order_by:
            parts.append(
                sql.SQL(" ORDER BY {}").format(sql.SQL(", ").join([o.compile() for o in self.order_by]))
            )
        if self.limit_value is not None:
            parts.append(sql.SQL(" LIMIT {}").format(sql.Placeholder()))
            params.append(self.limit_value)

        return sql.Composed(parts), params

    def get_raw_state(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "columns": self.columns,
            "where": self.where_clause,
            "order": list(self.order_by),
            "joins": list(self.joins),
            "limit": self.limit_value,
        }


class Insert(Statement):
    def __init__(self, table):
        super().__init__(table)
        self.value_map: Dict[str, Any] = {}
        self.returning_columns: Tuple[str, ...] = ()

    def values(self, values) -> "Insert":
        self.value_map.update(values)
        return self

    def returning(self, *columns: str) -> "Insert":
        self.returning_columns = tuple(columns)
        return self

    def compile(self) -> Tuple[sql.Composed, list]:
        # Most databases reject table aliases in INSERT
        table = self.table.unaliased().identifier()
        params = list(self.value_map.values())
        if self.value_map:
            parts = [
                sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
                    table,
                    sql.SQL(", ").join(column_identifier(c) for c in self.value_map),
                    sql.SQL(", ").join(sql.Placeholder() for _ in self.value_map),
                )
            ]
        else:
            parts = [sql.SQL("INSERT INTO {} DEFAULT VALUES").format(table)]
        if self.returning_columns:
            parts.append(
                sql.SQL(" RETURNING {}").format(
                    sql.SQL(", ").join(column_identifier(c) for c in self.returning_columns)
                )
            )
        return sql.Composed(parts), params

    def get_raw_state(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "values": dict(self.value_map),
            "returning": self.returning_columns,
        }


class Update(Statement):
    def __init__(self, table):
        super().__init__(table)
        self.set_map: Dict[str, Any] = {}
        self.where_clause = Where()
        self.joins: List[Join] = []

    def set(self, values) -> "Update":
        self.set_map.update(values)
        return self

    def where(self, condition) -> "Update":
        self.where_clause.add(condition)
        return self

    def join(self, table, on, type: str = JOIN_INNER) -> "Update":
        # PostgreSQL expresses joined updates as UPDATE ... FROM, which only
        # has inner-join semantics
        if type != JOIN_INNER:
            raise ValueError(f"Update supports inner joins only, got {type!r}")
        self.joins.append(Join(table, on, (), type))
        return self

    def compile(self) -> Tuple[sql.Composed, list]:
        if not self.set_map:
            raise ValueError("Update requires at least one column to set")

        params: list = []
        assignments = []
        for column, value in self.set_map.items():
            assignments.append(sql.SQL("{} = {}").format(column_identifier(column), sql.Placeholder()))
            params.append(value)

        parts = [
            sql.SQL("UPDATE {} SET {}").format(
                self.table.unaliased().identifier(), sql.SQL(", ").join(assignments)
            )
        ]
        conditions = Where()
        if self.joins:
            parts.append(
                sql.SQL(" FROM {}").format(sql.SQL(", ").join([j.table.identifier() for j in self.joins]))
            )
            for join in self.joins:
                conditions.add(join.on)
        conditions.add(self.where_clause)
        if conditions:
            parts.append(sql.SQL(" WHERE {}").format(conditions.compile(params)))
        return sql.Composed(parts), params

    def get_raw_state(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "set": dict(self.set_map),
            "where": self.where_clause,
            "joins": list(self.joins),
        }


class Delete(Statement):
    def __init__(self, table):
        super().__init__(table)
        self.where_clause = Where()

    def where(self, condition) -> "Delete":
        self.where_clause.add(condition)
        return self

    def compile(self) -> Tuple[sql.Composed, list]:
        params: list = []
        parts = [sql.SQL("DELETE FROM {}").format(self.table.unaliased().identifier())]
        if self.where_clause:
            parts.append(sql.SQL(" WHERE {}").format(self.where_clause.compile(params)))
        return sql.Composed(parts), params

    def get_raw_state(self) -> Dict[str, Any]:
        return {"table": self.table, "where": self.where_clause}


@dataclass
class Sql:
    """Statement factory bound to one table."""

    table: Optional[Table] = field(default=None)

    def __post_init__(self):
        if self.table is not None:
            self.table = Table.parse(self.table)

    def _table(self, table) -> Table:
        table = table if table is not None else self.table
        if table is None:
            raise ValueError("No table given and no default table configured")
        return Table.parse(table)

    def select(self, table=None, columns: Optional[Sequence[str]] = None) -> Select:
        return Select(self._table(table), columns)

    def insert(self, table=None) -> Insert:
        return Insert(self._table(table))

    def update(self, table=None) -> Update:
        return Update(self._table(table))

    def delete(self, table=None) -> Delete:
        return Delete(self._table(table))
