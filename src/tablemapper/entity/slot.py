from enum import Enum

from tablemapper.exceptions import RelationResolutionError


class SlotState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class RelationSlot:
    """
    Memo cell for one relation of one entity instance.

    The value itself lives in the entity's data; the slot only records
    whether it has been loaded. Not safe for concurrent first access.
    """

    __slots__ = ("name", "state")

    def __init__(self, name: str, state: SlotState = SlotState.UNRESOLVED):
        self.name = name
        self.state = state

    @property
    def resolved(self) -> bool:
        return self.state is SlotState.RESOLVED

    @property
    def unresolved(self) -> bool:
        return self.state is SlotState.UNRESOLVED

    def begin(self) -> None:
        if self.state is SlotState.RESOLVING:
            raise RelationResolutionError(f'Relation "{self.name}" is already being resolved')
        self.state = SlotState.RESOLVING

    def finish(self) -> None:
        self.state = SlotState.RESOLVED

    def reset(self) -> None:
        self.state = SlotState.UNRESOLVED

    def __repr__(self) -> str:
        return f"RelationSlot({self.name!r}, {self.state.value})"
