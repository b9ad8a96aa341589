from datetime import datetime
from typing import Any

from aws_lambda_powertools import Logger
from aws_lambda_powertools.metrics import MetricUnit

from services.booking.domain.entity import Booking
from services.booking.domain.enum import (
    BookingStatus,
    CommandType,
    FailureReason,
    RecancelPolicy,
)
from services.booking.domain.event import (
    BookingCancellationFailedEvent,
    BookingCancelledEvent,
)
from services.booking.domain.exception import (
    DuplicateCommandException,
    InvalidStatusTransitionException,
)
from services.booking.domain.outbox import (
    CommandOutcome,
    OutboxMessage,
    command_key_for,
)
from services.booking.domain.repository import BookingRepository, OutboxRepository
from services.booking.domain.value_object import BookingId
from services.shared.domain import (
    OptimisticLockException,
    PersistenceException,
    ResourceNotFoundException,
    SagaTransactionId,
)
from services.shared.utils.clock import Clock, utc_now
from services.shared.utils.logger import get_metrics

logger = Logger()
metrics = get_metrics()


class CancelBookingService:
    """予約キャンセルサービス（補償トランザクション用）

    存在しない予約・遷移できない予約・ストア障害は
    いずれも BookingCancellationFailed に変換して返す。
    """

    def __init__(
        self,
        repository: BookingRepository,
        outbox: OutboxRepository,
        topic: str,
        recancel_policy: RecancelPolicy = RecancelPolicy.FAIL,
        idempotency_enabled: bool = True,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._outbox = outbox
        self._topic = topic
        self._recancel_policy = recancel_policy
        self._idempotency_enabled = idempotency_enabled
        self._clock = clock

    def cancel(
        self,
        saga_transaction_id: SagaTransactionId,
        booking_id: BookingId,
        request_echo: dict[str, Any],
    ) -> OutboxMessage:
        """予約をキャンセルし、結果イベントを返す"""
        now = self._clock()
        command_key = (
            command_key_for(saga_transaction_id, CommandType.CANCEL_BOOKING)
            if self._idempotency_enabled
            else None
        )

        def fail(reason: FailureReason, message: str) -> OutboxMessage:
            logger.warning(
                "Cancel booking failed, car still booked",
                extra={
                    "saga_transaction_id": str(saga_transaction_id),
                    "booking_id": str(booking_id),
                    "reason_code": reason.value,
                },
            )
            event = BookingCancellationFailedEvent.because(
                saga_transaction_id, request_echo, reason, message
            )
            failure = OutboxMessage.for_event(
                self._topic, event, subject=booking_id, created_at=now
            )
            return self._record(failure, command_key)

        try:
            if command_key is not None:
                recorded = self._outbox.find_by_command_key(command_key)
                if recorded is not None:
                    metrics.add_metric(
                        name="DuplicateCommandReplayed", unit=MetricUnit.Count, value=1
                    )
                    logger.info(
                        "CancelBooking already processed, replaying outcome",
                        extra={"saga_transaction_id": str(saga_transaction_id)},
                    )
                    return recorded

            booking = self._repository.find_by_id(booking_id)
            if booking is None:
                return fail(
                    FailureReason.BOOKING_NOT_FOUND,
                    FailureReason.BOOKING_NOT_FOUND.render(booking_id=booking_id),
                )

            if (
                booking.status == BookingStatus.CANCELLED
                and self._recancel_policy == RecancelPolicy.SUCCEED
            ):
                return self._record(
                    self._cancelled_message(saga_transaction_id, booking, now),
                    command_key,
                )

            expected_version = booking.version
            try:
                booking.cancel(now)
            except InvalidStatusTransitionException as e:
                return fail(e.reason, e.message)

            outcome = CommandOutcome(
                message=self._cancelled_message(saga_transaction_id, booking, now),
                command_key=command_key,
            )
            self._repository.update(
                booking, expected_version=expected_version, outcome=outcome
            )
            logger.info(
                "Booking cancelled",
                extra={
                    "saga_transaction_id": str(saga_transaction_id),
                    "booking_id": str(booking_id),
                },
            )
            return outcome.message

        except DuplicateCommandException as e:
            return self._replay(e.command_key)
        except ResourceNotFoundException:
            return fail(
                FailureReason.BOOKING_NOT_FOUND,
                FailureReason.BOOKING_NOT_FOUND.render(booking_id=booking_id),
            )
        except OptimisticLockException:
            return fail(
                FailureReason.CONCURRENT_MODIFICATION,
                FailureReason.CONCURRENT_MODIFICATION.render(booking_id=booking_id),
            )
        except PersistenceException:
            logger.exception(
                "Booking store unavailable while cancelling booking",
                extra={"saga_transaction_id": str(saga_transaction_id)},
            )
            return fail(
                FailureReason.PERSISTENCE_UNAVAILABLE,
                FailureReason.PERSISTENCE_UNAVAILABLE.render(),
            )

    def reject(
        self,
        saga_transaction_id: SagaTransactionId,
        booking_id: BookingId | None,
        request_echo: dict[str, Any],
        error_count: int,
    ) -> OutboxMessage:
        """検証に失敗した CancelBooking を BookingCancellationFailed として記録する"""
        now = self._clock()
        command_key = (
            command_key_for(saga_transaction_id, CommandType.CANCEL_BOOKING)
            if self._idempotency_enabled
            else None
        )
        reason = FailureReason.INVALID_COMMAND
        event = BookingCancellationFailedEvent.because(
            saga_transaction_id, request_echo, reason, reason.render(errors=error_count)
        )
        failure = OutboxMessage.for_event(
            self._topic, event, subject=booking_id, created_at=now
        )

        try:
            if command_key is not None:
                recorded = self._outbox.find_by_command_key(command_key)
                if recorded is not None:
                    return recorded
            return self._record(failure, command_key)
        except DuplicateCommandException as e:
            return self._replay(e.command_key)
        except PersistenceException:
            logger.exception(
                "Booking store unavailable while rejecting CancelBooking",
                extra={"saga_transaction_id": str(saga_transaction_id)},
            )
            return failure.unrecorded()

    def _cancelled_message(
        self, saga_transaction_id: SagaTransactionId, booking: Booking, now: datetime
    ) -> OutboxMessage:
        return OutboxMessage.for_event(
            self._topic,
            BookingCancelledEvent.from_booking(saga_transaction_id, booking),
            subject=booking.id,
            created_at=now,
        )

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
            "CancelBooking processed concurrently, replaying outcome",
            extra={"command_key": command_key},
        )
        return recorded

    def _record(self, message: OutboxMessage, command_key: str | None) -> OutboxMessage:
        """状態変更を伴わない結果を Outbox に記録する（記録できなくても送信はする）"""
        try:
            self._outbox.add(CommandOutcome(message=message, command_key=command_key))
        except PersistenceException:
            logger.exception(
                "Outbox unavailable, outcome will be published unrecorded",
                extra={"saga_transaction_id": message.saga_transaction_id},
            )
            return message.unrecorded()
        return message
