from __future__ import annotations

from enum import Enum


class BookingStatus(str, Enum):
    """予約ステータス

    PENDING -> CONFIRMED / PENDING -> CANCELLED / CONFIRMED -> CANCELLED のみ許可。
    CANCELLED は終端で、どの状態からも PENDING には戻らない。
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    def can_transition_to(self, target: BookingStatus) -> bool:
        return target in _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]


_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
}
