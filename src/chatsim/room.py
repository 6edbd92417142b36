"""Chat room identity.

A room is identified by its member set: the sorted, deduplicated member ids
joined with underscores. Two rooms with the same members share one id.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

ROOM_ID_SEPARATOR = "_"


def derive_room_id(member_ids: Iterable[str]) -> str:
    """Build the room id for a member set.

    Examples
    --------
    >>> derive_room_id(["user_3", "user_1"])
    'user_1_user_3'
    >>> derive_room_id(["user_1", "user_3", "user_1"])
    'user_1_user_3'
    """
    return ROOM_ID_SEPARATOR.join(sorted(set(member_ids)))


@dataclass(frozen=True)
class ChatRoom:
    """Immutable snapshot of a chat room.

    Parameters
    ----------
    id : str
        Derived from ``member_ids`` via ``derive_room_id``.
    member_ids : tuple[str, ...]
        Sorted, deduplicated member identifiers.
    """

    id: str
    member_ids: tuple[str, ...]

    @classmethod
    def of(cls, member_ids: Iterable[str]) -> ChatRoom:
        members = tuple(sorted(set(member_ids)))
        return cls(id=derive_room_id(members), member_ids=members)

    def has_member(self, user_id: str) -> bool:
        return user_id in frozenset(self.member_ids)
