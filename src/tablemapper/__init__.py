"""
tablemapper

A data-mapper layer binding mutable, dirty-tracking entities to PostgreSQL
tables, with lazily resolved relations and save-then-reload persistence.
"""

from tablemapper.entity import Entity, ResourceEntity
from tablemapper.exceptions import (
    EntityDeleted,
    InvalidColumn,
    InvalidRelationDefinition,
    MapperError,
    RelationResolutionError,
    RowNotFound,
    TableMismatch,
    UnknownColumn,
    UnknownRepository,
)
from tablemapper.relation import RelationDescriptor, RelationResolver, RelationType, Via
from tablemapper.repository import Repository, RepositoryRegistry, SaveMode

__all__ = [
    "Entity",
    "EntityDeleted",
    "InvalidColumn",
    "InvalidRelationDefinition",
    "MapperError",
    "RelationDescriptor",
    "RelationResolutionError",
    "RelationResolver",
    "RelationType",
    "Repository",
    "RepositoryRegistry",
    "ResourceEntity",
    "RowNotFound",
    "SaveMode",
    "TableMismatch",
    "UnknownColumn",
    "UnknownRepository",
    "Via",
]
