from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

import structlog

from tablemapper.query.predicates import ColumnEquals, Where
from tablemapper.relation.descriptor import RelationDescriptor, RelationType

if TYPE_CHECKING:
    from tablemapper.entity.entity import Entity
    from tablemapper.repository.registry import RepositoryRegistry

logger = structlog.get_logger()


class RelationResolver:
    """
    Loads related entities for a relation descriptor.

    Target repositories are looked up in the registry by the descriptor's
    target_repository identifier.
    """

    def __init__(self, registry: "RepositoryRegistry"):
        self.registry = registry

    def resolve(self, descriptor: RelationDescriptor, entity_data: Mapping[str, Any]):
        """
        Resolve a relation against an entity's current values.

        Returns:
            The first matching entity or None for single relations, a list
            of entities (possibly empty) for many relations. No statement is
            issued when none of the local key values are set.
        """
        key_where = self.build_key_where(descriptor, entity_data)
        if not key_where:
            logger.debug(
                "relation_short_circuited",
                repository=str(descriptor.target_repository),
                local_columns=descriptor.local_columns,
            )
            return self._empty(descriptor)

        repository = self.registry.get(descriptor.target_repository)
        via = descriptor.via

        # static conditions win on key collision
        where = {**key_where, **descriptor.conditions}

        select = repository.select()
        select.where(where)
        if via is not None:
            select.join(via.table, self.join_condition(descriptor, repository.get_table().reference), columns=())
        repository.prepare_select(select, None, descriptor.order)
        rows = repository.select_with(select)

        logger.debug(
            "relation_resolved",
            repository=str(descriptor.target_repository),
            type=descriptor.type.value,
            rows=len(rows),
        )
        if descriptor.type is RelationType.SINGLE:
            return rows[0] if rows else None
        return list(rows)

    def build_key_where(self, descriptor: RelationDescriptor, entity_data: Mapping[str, Any]) -> Dict[str, Any]:
        """Equality predicates for every local key value that is set."""
        via = descriptor.via
        where: Dict[str, Any] = {}
        for target_column, local_column in descriptor.column_pairs:
            value = entity_data.get(local_column)
            if value is None:
                continue
            if via is not None:
                match_column = f"{via.table}.{via.column or target_column}"
            else:
                match_column = target_column
            where[match_column] = value
        return where

    def join_condition(self, descriptor: RelationDescriptor, source_table: str):
        """The explicit via join condition, or one derived from the column pairs."""
        via = descriptor.via
        if via.join_condition:
            return via.join_condition
        pairs: List[Tuple[str, str]] = [
            (f"{source_table}.{target_column}", f"{via.table}.{via.join or target_column}")
            for target_column in descriptor.target_columns
        ]
        return Where(*[ColumnEquals(left, right) for left, right in pairs])

    @staticmethod
    def _empty(descriptor: RelationDescriptor) -> Optional[list]:
        return None if descriptor.type is RelationType.SINGLE else []

    def resolve_for(self, entity: "Entity", relation: str):
        """Callback signature expected by Entity.bind_resolver."""
        return self.resolve(entity.relations[relation], entity.snapshot())
