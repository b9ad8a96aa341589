from datetime import datetime
from decimal import Decimal
from typing import TypedDict

from services.booking.domain.entity import Booking
from services.booking.domain.enum import BookingStatus
from services.booking.domain.service import calculate_total_price
from services.booking.domain.value_object import (
    BookingId,
    CarId,
    RentalPeriod,
    Requester,
)
from services.shared.domain import Money


class RentalDetails(TypedDict):
    """予約作成の入力データ構造"""

    car_id: str
    requester_id: str
    requester_contact: str
    rate_per_day: Decimal
    rental_start: datetime
    rental_end: datetime


class BookingFactory:
    """レンタカー予約エンティティのファクトリ

    - BookingId の採番（作成のたびに新しい ID）
    - プリミティブ型から Value Object への変換
    - 合計金額の算出と初期状態の設定
    """

    def create(self, details: RentalDetails, now: datetime) -> Booking:
        """新規予約エンティティを生成する

        Args:
            details: 予約内容（検証済みの貸出期間であること）
            now: 作成日時

        Returns:
            Booking: 生成された予約エンティティ（PENDING状態）
        """
        rental_period = RentalPeriod(
            start=details["rental_start"], end=details["rental_end"]
        )
        total_price = calculate_total_price(
            Money(details["rate_per_day"]), rental_period.start, rental_period.end
        )

        return Booking(
            id=BookingId.generate(),
            car_id=CarId(details["car_id"]),
            requester=Requester(
                requester_id=details["requester_id"],
                contact=details["requester_contact"],
            ),
            rental_period=rental_period,
            total_price=total_price,
            created_at=now,
            status=BookingStatus.PENDING,
        )
