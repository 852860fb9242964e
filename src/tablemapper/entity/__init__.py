"""
Entity

Mutable row objects with dirty tracking and lazily resolved relation slots.
"""

from tablemapper.entity.entity import Entity
from tablemapper.entity.resource import ResourceEntity
from tablemapper.entity.slot import RelationSlot, SlotState

__all__ = ["Entity", "RelationSlot", "ResourceEntity", "SlotState"]
