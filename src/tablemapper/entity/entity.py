from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from tablemapper.entity.slot import RelationSlot, SlotState
from tablemapper.exceptions import InvalidColumn, InvalidRelationDefinition, UnknownColumn
from tablemapper.relation.descriptor import RelationDescriptor

RowData = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]
Resolver = Callable[["Entity", str], Any]


def _differs(current: Any, value: Any) -> bool:
    # Strict comparison: 1 and True, or 1 and 1.0, count as different values
    return type(current) is not type(value) or current != value


class Entity:
    """
    A mutable row with per-field dirty tracking and lazily resolved relations.

    Subclasses declare their schema:

        class Post(Entity):
            columns = ("id", "title", "author_id")
            primary_keys = ("id",)
            relations = {
                "author": RelationDescriptor.single("author_id", "authors", "id"),
            }

    Columns and relations share one field namespace. Relation fields start
    unresolved; the first get() calls the resolver bound with
    bind_resolver() and memoizes the result until the next reset().
    """

    columns: Tuple[str, ...] = ()
    primary_keys: Tuple[str, ...] = ()
    relations: Mapping[str, RelationDescriptor] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.columns = tuple(cls.columns)
        cls.primary_keys = tuple(cls.primary_keys)
        for key in cls.primary_keys:
            if key not in cls.columns:
                raise InvalidColumn(key, f'Primary key "{key}" is not a column')

        relations = {}
        for name, definition in dict(cls.relations).items():
            if name in cls.columns:
                raise InvalidRelationDefinition(f'Relation "{name}" collides with a column')
            relations[name] = RelationDescriptor.from_config(definition)
        cls.relations = MappingProxyType(relations)

    def __init__(self, data: Optional[RowData] = None):
        self._resolver: Optional[Resolver] = None
        self.deleted = False
        self.reset()
        if data:
            self.populate(data)

    # -------------------------------------------------------------------------
    # Field access
    # -------------------------------------------------------------------------

    def get(self, column: str) -> Any:
        """
        Return a field value, resolving an unloaded relation first.

        Raises:
            UnknownColumn: column is neither in the row nor a relation
        """
        slot = self._slots.get(column)
        if slot is not None and not slot.resolved and self._resolver is not None:
            if self.data.get(column) is None:
                self._resolve(slot)

        if column in self.data:
            return self.data[column]
        raise UnknownColumn(column)

    def set(self, column: str, value: Any) -> None:
        """
        Set a field value.

        A changed value marks the field dirty; setting an equal value leaves
        the flag as it was. Unknown fields are ignored.
        """
        if column not in self.data:
            return
        if _differs(self.data[column], value):
            self.data[column] = value
            self.dirty[column] = True
            if column in self._slots:
                self._slots[column].finish()

    def unset(self, column: str) -> None:
        if column not in self.columns:
            raise InvalidColumn(column)
        self.data.pop(column, None)
        self.dirty.pop(column, None)

    def has(self, column: str) -> bool:
        return column in self.data

    __getitem__ = get
    __setitem__ = set
    __delitem__ = unset
    __contains__ = has

    # -------------------------------------------------------------------------
    # Bulk state
    # -------------------------------------------------------------------------

    def populate(self, row: RowData) -> "Entity":
        """Set every known field present in row; unknown keys are ignored."""
        items = row.items() if isinstance(row, Mapping) else row
        for column, value in items:
            if column in self.data:
                self.set(column, value)
        return self

    exchange = populate

    def reset(self) -> None:
        fields = self.columns + tuple(self.relations)
        self.data: Dict[str, Any] = dict.fromkeys(fields)
        self.dirty: Dict[str, bool] = dict.fromkeys(fields, False)
        self._slots: Dict[str, RelationSlot] = {name: RelationSlot(name) for name in self.relations}

    def synch(self, row: RowData) -> "Entity":
        """Replace all state with row, as loaded from storage (nothing dirty)."""
        self.reset()
        self.populate(row)
        self.mark_clean()
        return self

    def mark_clean(self) -> None:
        for column in self.dirty:
            self.dirty[column] = False

    def is_dirty(self, column: str = None) -> bool:
        if column is None:
            return any(self.dirty.values())
        return self.dirty.get(column, False)

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.data)

    def modified_snapshot(self) -> Dict[str, Any]:
        """Dirty columns and their values; relations are never included."""
        return {
            column: value
            for column, value in self.data.items()
            if self.dirty.get(column) and column not in self.relations
        }

    def primary_key_snapshot(self) -> Dict[str, Any]:
        return {key: self.data[key] for key in self.primary_keys if key in self.data}

    # -------------------------------------------------------------------------
    # Relations
    # -------------------------------------------------------------------------

    def get_relations(self) -> Dict[str, RelationDescriptor]:
        return dict(self.relations)

    def bind_resolver(self, resolver: Optional[Resolver]) -> None:
        """Register the callback used to load relation fields on first access."""
        self._resolver = resolver

    def is_resolved(self, relation: str) -> bool:
        return self._slots[relation].resolved

    def _resolve(self, slot: RelationSlot) -> None:
        slot.begin()
        try:
            value = self._resolver(self, slot.name)
        except Exception:
            slot.reset()
            raise
        self.data[slot.name] = value
        slot.finish()

    # -------------------------------------------------------------------------
    # Pickling
    # -------------------------------------------------------------------------

    def __getstate__(self) -> Dict[str, Any]:
        return {
            "data": dict(self.data),
            "dirty": dict(self.dirty),
            "resolved": [name for name, slot in self._slots.items() if slot.resolved],
            "deleted": self.deleted,
        }

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._resolver = None
        self.reset()
        self.data = state["data"]
        self.dirty = state["dirty"]
        self.deleted = state.get("deleted", False)
        for name in state.get("resolved", ()):
            if name in self._slots:
                self._slots[name].state = SlotState.RESOLVED

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.primary_key_snapshot()!r})"
