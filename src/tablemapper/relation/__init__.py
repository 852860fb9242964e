"""
Relation

Relation descriptors and the resolver that turns them into queries.
"""

from tablemapper.relation.descriptor import RelationDescriptor, RelationType, Via
from tablemapper.relation.resolver import RelationResolver

__all__ = ["RelationDescriptor", "RelationResolver", "RelationType", "Via"]
