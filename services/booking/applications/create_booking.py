from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger
from aws_lambda_powertools.metrics import MetricUnit

from services.booking.domain.enum import CommandType, FailureReason
from services.booking.domain.event import (
    BookingCreatedEvent,
    BookingCreationFailedEvent,
)
from services.booking.domain.exception import (
    DuplicateCommandException,
    RentalPeriodValidationException,
)
from services.booking.domain.factory import BookingFactory, RentalDetails
from services.booking.domain.outbox import (
    CommandOutcome,
    OutboxMessage,
    command_key_for,
)
from services.booking.domain.repository import BookingRepository, OutboxRepository
from services.booking.domain.service import validate_rental_period
from services.shared.domain import PersistenceException, SagaTransactionId
from services.shared.utils.clock import Clock, utc_now
from services.shared.utils.logger import get_metrics

logger = Logger()
metrics = get_metrics()


class CreateBookingService:
    """予約作成ユースケース

    検証 -> 金額算出 -> 予約生成 -> 永続化 の順に処理し、
    結果イベントを 1 件だけ返す（送信は OutboxRelay が行う）。

    予約と結果イベントは同じトランザクションで書き込むため、
    「保存したがイベントが消えた」状態にはならない。
    """

    def __init__(
        self,
        repository: BookingRepository,
        outbox: OutboxRepository,
        factory: BookingFactory,
        topic: str,
        idempotency_enabled: bool = True,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._outbox = outbox
        self._factory = factory
        self._topic = topic
        self._idempotency_enabled = idempotency_enabled
        self._clock = clock

    def create(
        self,
        saga_transaction_id: SagaTransactionId,
        details: RentalDetails,
        request_echo: dict[str, Any],
    ) -> OutboxMessage:
        """予約を作成し、結果イベントを返す

        検証エラーと永続化エラーは失敗イベントに変換し、例外は送出しない。
        """
        now = self._clock()
        command_key = (
            command_key_for(saga_transaction_id, CommandType.CREATE_BOOKING)
            if self._idempotency_enabled
            else None
        )

        try:
            if command_key is not None:
                recorded = self._outbox.find_by_command_key(command_key)
                if recorded is not None:
                    metrics.add_metric(
                        name="DuplicateCommandReplayed", unit=MetricUnit.Count, value=1
                    )
                    logger.info(
                        "CreateBooking already processed, replaying outcome",
                        extra={"saga_transaction_id": str(saga_transaction_id)},
                    )
                    return recorded

            try:
                validate_rental_period(
                    details["rental_start"], details["rental_end"], now
                )
            except RentalPeriodValidationException as e:
                logger.info(
                    "Rejected CreateBooking",
                    extra={
                        "saga_transaction_id": str(saga_transaction_id),
                        "reason_code": e.reason.value,
                    },
                )
                failure = self._failure_message(
                    saga_transaction_id, request_echo, e.reason, e.message, now
                )
                return self._record_failure(failure, command_key)

            booking = self._factory.create(details, now)
            outcome = CommandOutcome(
                message=OutboxMessage.for_event(
                    self._topic,
                    BookingCreatedEvent.from_booking(saga_transaction_id, booking),
                    subject=booking.id,
                    created_at=now,
                ),
                command_key=command_key,
            )
            self._repository.save(booking, outcome)
            logger.info(
                "Booking created",
                extra={
                    "saga_transaction_id": str(saga_transaction_id),
                    "booking_id": str(booking.id),
                },
            )
            return outcome.message

        except DuplicateCommandException as e:
            return self._replay(e.command_key)
        except PersistenceException:
            logger.exception(
                "Booking store unavailable while creating booking",
                extra={"saga_transaction_id": str(saga_transaction_id)},
            )
            return self._failure_message(
                saga_transaction_id,
                request_echo,
                FailureReason.PERSISTENCE_UNAVAILABLE,
                FailureReason.PERSISTENCE_UNAVAILABLE.render(),
                now,
            ).unrecorded()

    def reject(
        self,
        saga_transaction_id: SagaTransactionId,
        request_echo: dict[str, Any],
        error_count: int,
    ) -> OutboxMessage:
        """検証に失敗した CreateBooking を BookingCreationFailed として記録する"""
        now = self._clock()
        command_key = (
            command_key_for(saga_transaction_id, CommandType.CREATE_BOOKING)
            if self._idempotency_enabled
            else None
        )
        reason = FailureReason.INVALID_COMMAND
        failure = self._failure_message(
            saga_transaction_id,
            request_echo,
            reason,
            reason.render(errors=error_count),
            now,
        )

        try:
            if command_key is not None:
                recorded = self._outbox.find_by_command_key(command_key)
                if recorded is not None:
                    return recorded
            return self._record_failure(failure, command_key)
        except DuplicateCommandException as e:
            return self._replay(e.command_key)
        except PersistenceException:
            logger.exception(
                "Booking store unavailable while rejecting CreateBooking",
                extra={"saga_transaction_id": str(saga_transaction_id)},
            )
            return failure.unrecorded()

    def _record_failure(
        self, failure: OutboxMessage, command_key: str | None
    ) -> OutboxMessage:
        """失敗イベントを Outbox に記録する（記録できなくても送信はする）"""
        try:
            self._outbox.add(CommandOutcome(message=failure, command_key=command_key))
        except PersistenceException:
            logger.exception(
                "Outbox unavailable, failure event will be published unrecorded",
                extra={"saga_transaction_id": failure.saga_transaction_id},
            )
            return failure.unrecorded()
        return failure

    def _failure_message(
        self,
        saga_transaction_id: SagaTransactionId,
        request_echo: dict[str, Any],
        reason: FailureReason,
        message: str,
        now: datetime,
    ) -> OutboxMessage:
        event = BookingCreationFailedEvent.because(
            saga_transaction_id, request_echo, reason, message
        )
        return OutboxMessage.for_event(self._topic, event, created_at=now)

    def _replay(self, command_key: str) -> OutboxMessage:
        """並行して処理された同じコマンドの結果を返す"""
        recorded = self._outbox.find_by_command_key(command_key)
        if recorded is None:
            raise PersistenceException(
                f"Processed command has no recorded outcome: {command_key}"
            )
        metrics.add_metric(
            name="DuplicateCommandReplayed", unit=MetricUnit.Count, value=1
        )
        logger.info(
            "CreateBooking processed concurrently, replaying outcome",
            extra={"command_key": command_key},
        )
        return recorded
