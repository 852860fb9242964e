from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from tablemapper.exceptions import InvalidRelationDefinition


class RelationType(str, Enum):
    SINGLE = "single"
    MANY = "many"


def _column_tuple(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Via:
    """
    Intermediate table a relation is resolved through.

    join_condition: explicit ON clause; derived from the column pairs when absent
    join: column on the intermediate table the target columns join to
    column: column on the intermediate table matched against the local values
    """

    table: str
    join_condition: Optional[str] = None
    join: Optional[str] = None
    column: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.table, str) or not self.table:
            raise InvalidRelationDefinition("Via table is not set")


@dataclass(frozen=True)
class RelationDescriptor:
    """Static description of how to find related rows from an entity's values."""

    local_columns: Tuple[str, ...]
    target_repository: Any
    target_columns: Tuple[str, ...] = ()
    type: RelationType = RelationType.MANY
    conditions: Mapping[str, Any] = field(default_factory=dict, hash=False)
    order: Tuple[str, ...] = ()
    via: Optional[Via] = None

    def __post_init__(self):
        local_columns = _column_tuple(self.local_columns)
        if not local_columns:
            raise InvalidRelationDefinition("Relation column is not set")
        if self.target_repository is None or self.target_repository == "":
            raise InvalidRelationDefinition("Relation target repository is not set")

        target_columns = _column_tuple(self.target_columns) or local_columns
        if len(local_columns) != len(target_columns):
            raise InvalidRelationDefinition("Column counts of relations do not match")

        try:
            relation_type = RelationType(self.type)
        except ValueError:
            raise InvalidRelationDefinition(f"Unknown relation type: {self.type!r}") from None

        via = self.via
        if via is not None and not isinstance(via, Via):
            via = Via(**via)

        object.__setattr__(self, "local_columns", local_columns)
        object.__setattr__(self, "target_columns", target_columns)
        object.__setattr__(self, "type", relation_type)
        object.__setattr__(self, "conditions", dict(self.conditions or {}))
        object.__setattr__(self, "order", _column_tuple(self.order))
        object.__setattr__(self, "via", via)

    @classmethod
    def single(cls, local_columns, target_repository, target_columns=None, **kwargs) -> "RelationDescriptor":
        return cls(local_columns, target_repository, target_columns, RelationType.SINGLE, **kwargs)

    @classmethod
    def many(cls, local_columns, target_repository, target_columns=None, **kwargs) -> "RelationDescriptor":
        return cls(local_columns, target_repository, target_columns, RelationType.MANY, **kwargs)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RelationDescriptor":
        """
        Build a descriptor from its configuration mapping.

        {
            "type": "many",
            "column": "id",
            "table": {"repository": "tags", "column": "post_id"},
            "where": {"visible": True},
            "order": ["name"],
            "via": {"table": "post_tags", "column": "post_id", "join": "tag_id"},
        }
        """
        if isinstance(config, RelationDescriptor):
            return config
        if "column" not in config:
            raise InvalidRelationDefinition("Relation column is not set")
        table = config.get("table")
        if not isinstance(table, Mapping):
            raise InvalidRelationDefinition("Relation table data is not set")
        repository = table.get("repository")
        if not isinstance(repository, str):
            raise InvalidRelationDefinition("Relation table repository is not set")

        via = config.get("via") or None
        if via is not None:
            if not isinstance(via, Mapping):
                raise InvalidRelationDefinition("Via definition must be a mapping")
            via = Via(
                table=via.get("table"),
                join_condition=via.get("join_condition"),
                join=via.get("join"),
                column=via.get("column"),
            )

        return cls(
            local_columns=config["column"],
            target_repository=repository,
            target_columns=table.get("column"),
            type=config.get("type", RelationType.MANY),
            conditions=config.get("where") or {},
            order=config.get("order") or (),
            via=via,
        )

    @property
    def column_pairs(self) -> Tuple[Tuple[str, str], ...]:
        """(target_column, local_column) pairs, in declaration order."""
        return tuple(zip(self.target_columns, self.local_columns))
