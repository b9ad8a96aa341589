from typing import Any

from aws_lambda_powertools import Logger

from services.booking.applications.cancel_booking import CancelBookingService
from services.booking.applications.create_booking import CreateBookingService
from services.booking.applications.outbox_relay import OutboxRelay
from services.booking.domain.enum import CommandType
from services.booking.domain.exception import InvalidCommandException
from services.booking.domain.factory import RentalDetails
from services.booking.domain.outbox import OutboxMessage
from services.booking.domain.value_object import BookingId
from services.booking.handlers.request_models import (
    CancelBookingCommand,
    CreateBookingCommand,
    parse_command,
)
from services.shared.domain import SagaTransactionId

logger = Logger()


class CommandDispatcher:
    """booking-commands のコマンドを種別ごとのユースケースに振り分ける

    コマンド 1 件につき結果イベントを 1 件だけ送信する。
    送信に失敗した場合は TransportException をそのまま送出し、
    チャネルに再配信させる（再配信時は記録済みの結果が再送される）。
    """

    def __init__(
        self,
        create_service: CreateBookingService,
        cancel_service: CancelBookingService,
        relay: OutboxRelay,
    ) -> None:
        self._create_service = create_service
        self._cancel_service = cancel_service
        self._relay = relay

    def dispatch(self, body: dict[str, Any]) -> OutboxMessage:
        """コマンドを処理し、送信した結果イベントを返す"""
        try:
            command = parse_command(body)
        except InvalidCommandException as e:
            return self._relay.deliver(self._reject(body, e))

        saga_transaction_id = SagaTransactionId(value=command.saga_transaction_id)
        logger.info(
            f"Received {command.command_type} command",
            extra={"saga_transaction_id": str(saga_transaction_id)},
        )

        if isinstance(command, CreateBookingCommand):
            message = self._create_service.create(
                saga_transaction_id, _to_rental_details(command), body
            )
        elif isinstance(command, CancelBookingCommand):
            message = self._cancel_service.cancel(
                saga_transaction_id, BookingId(value=command.booking_id), body
            )
        else:  # pragma: no cover
            raise TypeError(f"Unsupported command: {type(command).__name__}")

        return self._relay.deliver(message)

    def _reject(
        self, body: dict[str, Any], error: InvalidCommandException
    ) -> OutboxMessage:
        """相関IDのある不正なコマンドは失敗イベントで応答する

        sagaTransactionId や commandType が読めない場合は応答先が無いので、
        例外をそのまま送出する。
        """
        if not isinstance(body, dict):
            raise error
        saga_id = body.get("sagaTransactionId")
        command_type = body.get("commandType")
        if not isinstance(saga_id, str) or not saga_id.strip():
            raise error
        if command_type not in (
            CommandType.CREATE_BOOKING.value,
            CommandType.CANCEL_BOOKING.value,
        ):
            raise error
        saga_transaction_id = SagaTransactionId(value=saga_id)
        logger.warning(
            f"Rejected malformed {command_type} command",
            extra={
                "saga_transaction_id": saga_id,
                "error_count": error.error_count,
            },
        )

        if command_type == CommandType.CREATE_BOOKING.value:
            return self._create_service.reject(
                saga_transaction_id, body, error.error_count
            )
        booking_id = body.get("bookingId")
        subject = (
            BookingId(value=booking_id)
            if isinstance(booking_id, str) and booking_id.strip()
            else None
        )
        return self._cancel_service.reject(
            saga_transaction_id, subject, body, error.error_count
        )


def _to_rental_details(command: CreateBookingCommand) -> RentalDetails:
    """コマンドから RentalDetails を構築する"""

    return {
        "car_id": command.car_id,
        "requester_id": command.requester_id,
        "requester_contact": command.requester_contact,
        "rate_per_day": command.rate_per_day,
        "rental_start": command.rental_start,
        "rental_end": command.rental_end,
    }
