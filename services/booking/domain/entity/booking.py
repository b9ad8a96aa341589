from datetime import datetime

from services.booking.domain.enum import BookingStatus
from services.booking.domain.exception import InvalidStatusTransitionException
from services.booking.domain.value_object import (
    BookingId,
    CarId,
    RentalPeriod,
    Requester,
)
from services.shared.domain import AggregateRoot, Money
from services.shared.domain.exception import BusinessRuleViolationException
from services.shared.utils.clock import ensure_utc


class Booking(AggregateRoot[BookingId]):
    """レンタカー予約

    生成は予約作成ユースケースのみ（初期状態は PENDING）。
    合計金額は生成時に算出され、呼び出し側が直接設定することはない。
    """

    def __init__(
        self,
        id: BookingId,
        car_id: CarId,
        requester: Requester,
        rental_period: RentalPeriod,
        total_price: Money,
        created_at: datetime,
        updated_at: datetime | None = None,
        status: BookingStatus = BookingStatus.PENDING,
        version: int = 0,
    ) -> None:
        super().__init__(id, version)

        self._car_id = car_id
        self._requester = requester
        self._rental_period = rental_period
        self._total_price = total_price
        self._status = status
        self._created_at = ensure_utc(created_at)
        self._updated_at = ensure_utc(updated_at) if updated_at else self._created_at

        self._validate_timestamps()

    def _validate_timestamps(self) -> None:
        """作成日時 <= 更新日時"""
        if self._updated_at < self._created_at:
            raise BusinessRuleViolationException(
                "Updated timestamp must not be before created timestamp"
            )

    @property
    def car_id(self) -> CarId:
        return self._car_id

    @property
    def requester(self) -> Requester:
        return self._requester

    @property
    def rental_period(self) -> RentalPeriod:
        return self._rental_period

    @property
    def total_price(self) -> Money:
        return self._total_price

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def confirm(self, now: datetime) -> None:
        """予約を確定する（PENDING からのみ）"""
        self._transition_to(BookingStatus.CONFIRMED, now)

    def cancel(self, now: datetime) -> None:
        """予約をキャンセルする（PENDING / CONFIRMED から）"""
        self._transition_to(BookingStatus.CANCELLED, now)

    def touch(self, now: datetime) -> None:
        """状態遷移を伴わない更新を記録する"""
        if self._status == BookingStatus.CANCELLED:
            raise InvalidStatusTransitionException(self.id, self._status, self._status)
        self._mark_modified(now)

    def _transition_to(self, target: BookingStatus, now: datetime) -> None:
        if not self._status.can_transition_to(target):
            raise InvalidStatusTransitionException(self.id, self._status, target)
        self._status = target
        self._mark_modified(now)

    def _mark_modified(self, now: datetime) -> None:
        self._updated_at = max(ensure_utc(now), self._updated_at)
        self._bump_version()
