"""booking-events に送る結果イベント

コマンド 1 件につき、以下のいずれか 1 件だけを送る。
キーは camelCase（sagaTransactionId など）で直列化する。
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from services.booking.domain.entity import Booking
from services.booking.domain.enum import FailureReason
from services.shared.domain import SagaTransactionId


class BookingEvent(BaseModel):
    """結果イベントの基底モデル"""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    saga_transaction_id: str

    def to_payload(self) -> dict[str, Any]:
        """バスに載せる JSON 互換の dict に変換する"""
        return self.model_dump(mode="json", by_alias=True)


class BookingCreatedEvent(BookingEvent):
    """予約が作成された"""

    event_type: Literal["BookingCreated"] = "BookingCreated"
    booking_id: str
    car_id: str
    requester_id: str
    requester_contact: str
    rental_start: datetime
    rental_end: datetime
    amount: Decimal
    status: Literal["PENDING"] = "PENDING"

    @classmethod
    def from_booking(
        cls, saga_transaction_id: SagaTransactionId, booking: Booking
    ) -> BookingCreatedEvent:
        return cls(
            saga_transaction_id=str(saga_transaction_id),
            booking_id=str(booking.id),
            car_id=str(booking.car_id),
            requester_id=booking.requester.requester_id,
            requester_contact=booking.requester.contact,
            rental_start=booking.rental_period.start,
            rental_end=booking.rental_period.end,
            amount=booking.total_price.amount,
        )


class BookingCancelledEvent(BookingEvent):
    """予約がキャンセルされた（補償トランザクション）"""

    event_type: Literal["BookingCancelled"] = "BookingCancelled"
    booking_id: str
    car_id: str
    requester_id: str
    requester_contact: str
    rental_start: datetime
    rental_end: datetime
    amount: Decimal
    status: Literal["CANCELLED"] = "CANCELLED"

    @classmethod
    def from_booking(
        cls, saga_transaction_id: SagaTransactionId, booking: Booking
    ) -> BookingCancelledEvent:
        return cls(
            saga_transaction_id=str(saga_transaction_id),
            booking_id=str(booking.id),
            car_id=str(booking.car_id),
            requester_id=booking.requester.requester_id,
            requester_contact=booking.requester.contact,
            rental_start=booking.rental_period.start,
            rental_end=booking.rental_period.end,
            amount=booking.total_price.amount,
        )


class BookingFailureEvent(BookingEvent):
    """失敗イベントの共通部分（受信したコマンドをそのまま返す）"""

    request_payload_echo: dict[str, Any]
    reason: str
    reason_code: FailureReason


class BookingCreationFailedEvent(BookingFailureEvent):
    """予約の作成に失敗した"""

    event_type: Literal["BookingCreationFailed"] = "BookingCreationFailed"

    @classmethod
    def because(
        cls,
        saga_transaction_id: SagaTransactionId,
        request_payload_echo: dict[str, Any],
        reason: FailureReason,
        message: str,
    ) -> BookingCreationFailedEvent:
        return cls(
            saga_transaction_id=str(saga_transaction_id),
            request_payload_echo=request_payload_echo,
            reason=f"Booking creation failed: {message}",
            reason_code=reason,
        )


class BookingCancellationFailedEvent(BookingFailureEvent):
    """予約のキャンセルに失敗した（車両は予約されたまま）"""

    event_type: Literal["BookingCancellationFailed"] = "BookingCancellationFailed"

    @classmethod
    def because(
        cls,
        saga_transaction_id: SagaTransactionId,
        request_payload_echo: dict[str, Any],
        reason: FailureReason,
        message: str,
    ) -> BookingCancellationFailedEvent:
        return cls(
            saga_transaction_id=str(saga_transaction_id),
            request_payload_echo=request_payload_echo,
            reason=f"Booking cancellation failed: {message}",
            reason_code=reason,
        )
