from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Type, Union

import structlog

from tablemapper.entity.entity import Entity, RowData
from tablemapper.exceptions import EntityDeleted, RowNotFound, TableMismatch
from tablemapper.query.statements import Delete, Insert, Select, Sql, Update
from tablemapper.query.table import Table
from tablemapper.relation.resolver import RelationResolver

logger = structlog.get_logger()


class SaveMode(str, Enum):
    AUTO = "auto"
    INSERT = "insert"
    UPDATE = "update"


def _is_empty_key(value: Any) -> bool:
    return value is None or value == ""


class Repository:
    """
    Gateway between one table and its entity type.

    Subclasses declare the table and entity type, plus constraints applied to
    every query:

        class PostRepository(Repository):
            table = "posts"
            entity_class = Post
            default_where = {"deleted_at": None}
            default_order = ["created_at DESC"]

    The same settings can be passed to the constructor. Relations of
    materialized entities are resolved through `registry`; without one they
    stay unresolved.
    """

    table: Union[str, Table, Mapping[str, str], None] = None
    entity_class: Type[Entity] = Entity
    default_where: Any = None
    default_order: Any = ()

    def __init__(
        self,
        database=None,
        registry=None,
        table=None,
        entity_class: Type[Entity] = None,
        where=None,
        order=None,
    ):
        if database is None:
            from tablemapper.db import Database

            database = Database()
        self.database = database
        self.registry = registry
        table = table if table is not None else self.table
        if table is None:
            raise ValueError(f"{type(self).__name__} has no table configured")
        self.table = Table.parse(table)
        if entity_class is not None:
            self.entity_class = entity_class
        if not self.entity_class.columns:
            raise ValueError(f"{type(self).__name__} needs an entity class that declares columns")
        if where is not None:
            self.default_where = where
        if order is not None:
            self.default_order = order
        self.sql = Sql(self.table)
        self.resolver = RelationResolver(registry) if registry is not None else None
        self.last_generated_key: Optional[Any] = None

    def get_table(self) -> Table:
        return self.table

    def get_last_generated_key(self) -> Optional[Any]:
        return self.last_generated_key

    # =========================================================================
    # Entities
    # =========================================================================

    def create(self, data: Optional[RowData] = None) -> Entity:
        """New, unsaved entity; fields given in data are dirty."""
        entity = self.entity_class()
        self._bind(entity)
        if data:
            entity.exchange(data)
        return entity

    def materialize(self, row: Mapping[str, Any]) -> Entity:
        """Entity for a storage row: clean, relations unresolved."""
        entity = self.entity_class()
        entity.synch(row)
        self._bind(entity)
        return entity

    def _bind(self, entity: Entity) -> None:
        if self.resolver is not None and entity.relations:
            entity.bind_resolver(self.resolver.resolve_for)

    # =========================================================================
    # Reads
    # =========================================================================

    def select(self) -> Select:
        return self.sql.select()

    def select_with(self, select: Select) -> List[Entity]:
        return [self.materialize(row) for row in self.database.fetch_all(select)]

    def prepare_select(self, select: Select = None, where=None, order=None) -> Select:
        """Apply call-site where/order, then the repository defaults."""
        if select is None:
            select = self.select()
        if where:
            select.where(where)
        if self.default_where:
            select.where(self.default_where)
        if order:
            select.order(order)
        if self.default_order:
            select.order(self.default_order)
        return select

    def find(self, where=None, order=None, select: Select = None) -> List[Entity]:
        select = self.prepare_select(select, where, order)
        return self.select_with(select)

    def find_one(self, where=None, order=None, select: Select = None) -> Optional[Entity]:
        results = self.find(where, order, select)
        return results[0] if results else None

    def find_by_field(self, name: str, value: Any, where=None, order=None, select: Select = None) -> List[Entity]:
        if select is None:
            select = self.select()
        select.where({name: value})
        if callable(where):
            where(select)
            where = None
        return self.find(where, order, select)

    def find_one_by_field(self, name: str, value: Any, where=None, order=None) -> Optional[Entity]:
        results = self.find_by_field(name, value, where, order)
        return results[0] if results else None

    # =========================================================================
    # Save / reconcile
    # =========================================================================

    def save(self, entity: Entity, mode: Union[SaveMode, str] = SaveMode.AUTO) -> None:
        """
        Insert or update an entity, then reload it from storage.

        In AUTO mode the entity is inserted when all of its primary key
        values are empty and updated otherwise. After the write the row is
        read back by primary key (preferring values just written) and the
        entity is synched with it.

        Raises:
            RowNotFound: the reload matched no row
            EntityDeleted: the entity was removed through this layer
            ValueError: the entity class declares no primary key
        """
        if entity.deleted:
            raise EntityDeleted(f"Cannot save deleted entity {entity!r}")
        if not entity.primary_keys:
            raise ValueError(f"Cannot save {type(entity).__name__}: it declares no primary key to reload by")

        mode = SaveMode(mode)
        data = entity.modified_snapshot()
        existing = entity.snapshot()
        primary_keys = entity.primary_key_snapshot()

        if mode is SaveMode.AUTO:
            if all(_is_empty_key(value) for value in primary_keys.values()):
                mode = SaveMode.INSERT
            else:
                mode = SaveMode.UPDATE

        if mode is SaveMode.INSERT:
            for column in entity.primary_keys:
                if column in data and _is_empty_key(data[column]):
                    del data[column]
            self.insert(data)
            key = self.get_last_generated_key()
            if key is not None and len(entity.primary_keys) == 1:
                data[entity.primary_keys[0]] = key
        elif data:
            self.update(data, primary_keys)

        reload_keys = {}
        for column in entity.primary_keys:
            value = data.get(column)
            reload_keys[column] = value if value is not None else existing.get(column)
        if "" in reload_keys.values():
            raise RowNotFound(f"No key to reload {self.table} by after {mode.value}: {reload_keys!r}")

        result = self.find_one(reload_keys)
        if result is None:
            raise RowNotFound(f"No row found in {self.table} for {reload_keys!r}")
        entity.synch(result.snapshot())
        self._bind(entity)

        logger.debug("entity_saved", table=str(self.table), mode=mode.value, keys=reload_keys)

    def synch(self, entity: Entity, primary_keys: Optional[Mapping[str, Any]] = None) -> None:
        """Reload an entity from storage, discarding in-memory changes."""
        if primary_keys is None:
            primary_keys = entity.primary_key_snapshot()
        result = self.find_one(primary_keys)
        if result is None:
            raise RowNotFound(f"No row found in {self.table} for {dict(primary_keys)!r}")
        entity.synch(result.snapshot())
        self._bind(entity)

    def remove(self, entity: Entity) -> int:
        """Delete an entity's row by primary key and mark the entity deleted."""
        if entity.deleted:
            raise EntityDeleted(f"Entity {entity!r} is already deleted")
        primary_keys = entity.primary_key_snapshot()
        if not primary_keys or any(_is_empty_key(v) for v in primary_keys.values()):
            raise ValueError(f"Cannot delete {entity!r} without a complete primary key")
        affected = self.delete(primary_keys)
        entity.deleted = True
        return affected

    # =========================================================================
    # Write primitives
    # =========================================================================

    def insert(self, values: Mapping[str, Any]) -> int:
        insert = self.sql.insert()
        insert.values(values)
        if len(self.entity_class.primary_keys) == 1:
            insert.returning(self.entity_class.primary_keys[0])
        return self.execute_insert(insert)

    def update(self, values: Mapping[str, Any], where=None, joins=None) -> int:
        """
        Update rows matching where.

        joins is a list of {"name": table, "on": condition, "type": "inner"}
        mappings.
        """
        update = self.sql.update()
        update.set(values)
        if where is not None:
            update.where(where)
        for join in joins or ():
            update.join(join["name"], join["on"], join.get("type", "inner"))
        return self.execute_update(update)

    def delete(self, where: Union[Any, Callable[[Delete], None]]) -> int:
        delete = self.sql.delete()
        if callable(where):
            where(delete)
        else:
            delete.where(where)
        return self.execute_delete(delete)

    def execute_insert(self, insert: Insert) -> int:
        self._check_table(insert)
        result = self.database.execute(insert)
        self.last_generated_key = result.generated_key
        return result.affected_rows

    def execute_update(self, update: Update) -> int:
        self._check_table(update)
        return self.database.execute(update).affected_rows

    def execute_delete(self, delete: Delete) -> int:
        self._check_table(delete)
        return self.database.execute(delete).affected_rows

    def _check_table(self, statement) -> None:
        if statement.table != self.table:
            raise TableMismatch(
                f"The table name of the provided {type(statement).__name__} object "
                f"must match that of the table ({statement.table} != {self.table})"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.table})"
