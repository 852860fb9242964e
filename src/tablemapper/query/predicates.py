from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping

from psycopg import sql

COMPARISON_OPERATORS = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "ILIKE", "NOT LIKE", "NOT ILIKE"}
)
ORDER_DIRECTIONS = ("ASC", "DESC")


def column_identifier(column: str) -> sql.Identifier:
    """Identifier for a column name, splitting "table.column" qualifiers."""
    return sql.Identifier(*column.split("."))


@dataclass(frozen=True)
class Compare:
    """
    Comparison value for use in where mappings.

    {"views": Compare(">=", 10)} compiles to "views" >= %s.
    """

    operator: str
    value: Any

    def __post_init__(self):
        operator = self.operator.strip().upper()
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.operator!r}")
        object.__setattr__(self, "operator", operator)


class Predicate:
    """A single boolean condition inside a WHERE or ON clause."""

    def compile(self, params: list) -> sql.Composable:
        raise NotImplementedError


@dataclass(frozen=True)
class Comparison(Predicate):
    column: str
    operator: str
    value: Any

    def compile(self, params: list) -> sql.Composable:
        ident = column_identifier(self.column)
        if self.value is None:
            if self.operator == "=":
                return sql.SQL("{} IS NULL").format(ident)
            if self.operator in ("!=", "<>"):
                return sql.SQL("{} IS NOT NULL").format(ident)
            raise ValueError(f"Cannot compare {self.column} {self.operator} NULL")
        params.append(self.value)
        return sql.SQL("{} {} {}").format(ident, sql.SQL(self.operator), sql.Placeholder())


@dataclass(frozen=True)
class In(Predicate):
    column: str
    values: tuple

    def compile(self, params: list) -> sql.Composable:
        # IN () is a syntax error; an empty list matches nothing
        if not self.values:
            return sql.SQL("FALSE")
        params.extend(self.values)
        placeholders = sql.SQL(", ").join(sql.Placeholder() for _ in self.values)
        return sql.SQL("{} IN ({})").format(column_identifier(self.column), placeholders)


@dataclass(frozen=True)
class ColumnEquals(Predicate):
    """Equality between two columns, as used in join conditions."""

    left: str
    right: str

    def compile(self, params: list) -> sql.Composable:
        return sql.SQL("{} = {}").format(column_identifier(self.left), column_identifier(self.right))


@dataclass(frozen=True)
class Raw(Predicate):
    """Trusted SQL text, e.g. a join condition taken from configuration."""

    text: str
    params: tuple = ()

    def compile(self, params: list) -> sql.Composable:
        params.extend(self.params)
        return sql.Composed([sql.SQL("("), sql.SQL(self.text), sql.SQL(")")])


def predicate_for(column: str, value: Any) -> Predicate:
    if isinstance(value, Compare):
        return Comparison(column, value.operator, value.value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return In(column, tuple(value))
    return Comparison(column, "=", value)


class Where:
    """AND-combined list of predicates."""

    def __init__(self, *conditions):
        self.predicates: List[Predicate] = []
        for condition in conditions:
            self.add(condition)

    def add(self, condition) -> "Where":
        """
        Add a condition.

        Mappings contribute one predicate per entry (None means IS NULL, a
        list/tuple/set means IN, a Compare means that comparison, anything
        else equality). Strings are taken as raw SQL. Predicates and other
        Where objects are appended as-is; lists add each item in turn.
        """
        if condition is None:
            return self
        if isinstance(condition, Where):
            self.predicates.extend(condition.predicates)
        elif isinstance(condition, Predicate):
            self.predicates.append(condition)
        elif isinstance(condition, str):
            self.predicates.append(Raw(condition))
        elif isinstance(condition, Mapping):
            for column, value in condition.items():
                self.predicates.append(predicate_for(column, value))
        elif isinstance(condition, (list, tuple)):
            for item in condition:
                self.add(item)
        else:
            raise TypeError(f"Unsupported condition type: {type(condition).__name__}")
        return self

    def compile(self, params: list) -> sql.Composable:
        return sql.SQL(" AND ").join([p.compile(params) for p in self.predicates])

    def __bool__(self) -> bool:
        return bool(self.predicates)

    def __len__(self) -> int:
        return len(self.predicates)

    def __iter__(self):
        return iter(self.predicates)

    def __repr__(self) -> str:
        return f"Where({self.predicates!r})"


@dataclass(frozen=True)
class OrderBy:
    column: str
    direction: str = "ASC"

    @classmethod
    def parse(cls, value) -> "OrderBy":
        if isinstance(value, OrderBy):
            return value
        parts = str(value).split()
        if len(parts) == 1:
            return cls(parts[0])
        if len(parts) == 2 and parts[1].upper() in ORDER_DIRECTIONS:
            return cls(parts[0], parts[1].upper())
        raise ValueError(f"Invalid order specification: {value!r}")

    def compile(self) -> sql.Composable:
        return sql.SQL("{} {}").format(column_identifier(self.column), sql.SQL(self.direction))


def parse_order(order) -> List[OrderBy]:
    """Normalize "a", "a DESC, b", OrderBy objects or lists of either."""
    if not order:
        return []
    if isinstance(order, OrderBy):
        return [order]
    if isinstance(order, str):
        return [OrderBy.parse(part) for part in order.split(",") if part.strip()]
    if isinstance(order, Iterable):
        result = []
        for item in order:
            result.extend(parse_order(item))
        return result
    raise TypeError(f"Unsupported order type: {type(order).__name__}")
