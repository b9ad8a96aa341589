from aws_lambda_powertools import Logger

from services.booking.domain.entity import Booking
from services.booking.domain.repository import BookingRepository
from services.booking.domain.value_object import BookingId
from services.shared.domain import ResourceNotFoundException
from services.shared.utils.clock import Clock, utc_now

logger = Logger()


class ManageBookingService:
    """管理用の予約操作（Saga からは呼ばれない）"""

    def __init__(self, repository: BookingRepository, clock: Clock = utc_now) -> None:
        self._repository = repository
        self._clock = clock

    def get(self, booking_id: BookingId) -> Booking | None:
        return self._repository.find_by_id(booking_id)

    def list_all(self) -> list[Booking]:
        return self._repository.list_all()

    def update(self, booking: Booking) -> Booking:
        """予約を更新する

        存在しない予約を更新しようとした場合は upsert せずに失敗させる。
        """
        if not self._repository.exists_by_id(booking.id):
            raise ResourceNotFoundException(f"Booking not found with ID: {booking.id}")
        expected_version = booking.version
        booking.touch(self._clock())
        self._repository.update(booking, expected_version=expected_version)
        return booking

    def confirm(self, booking_id: BookingId) -> Booking:
        """予約を確定する（PENDING -> CONFIRMED）"""
        booking = self._repository.find_by_id(booking_id)
        if booking is None:
            raise ResourceNotFoundException(f"Booking not found with ID: {booking_id}")
        expected_version = booking.version
        booking.confirm(self._clock())
        self._repository.update(booking, expected_version=expected_version)
        logger.info("Booking confirmed", extra={"booking_id": str(booking_id)})
        return booking

    def delete(self, booking_id: BookingId) -> None:
        self._repository.delete_by_id(booking_id)
        logger.info("Booking deleted", extra={"booking_id": str(booking_id)})
