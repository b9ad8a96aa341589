from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from services.booking.applications.outbox_relay import OutboxRelay
from services.booking.domain.enum import FailureReason, OutboxStatus
from services.booking.domain.event import BookingCreationFailedEvent
from services.booking.domain.outbox import CommandOutcome, OutboxMessage
from services.shared.domain import (
    PersistenceException,
    SagaTransactionId,
    TransportException,
)


def failure_message(saga: str, created_at=None) -> OutboxMessage:
    event = BookingCreationFailedEvent.because(
        SagaTransactionId(value=saga),
        {},
        FailureReason.PERSISTENCE_UNAVAILABLE,
        "Booking store unavailable",
    )
    return OutboxMessage.for_event("booking-events", event, created_at=created_at)


class TestOutboxRelay:
    def test_deliver_publishes_and_marks_published(self, outbox, publisher):
        # Arrange
        message = failure_message("saga-1")
        outbox.add(CommandOutcome(message=message))
        relay = OutboxRelay(outbox=outbox, publisher=publisher)

        # Act
        delivered = relay.deliver(message)

        # Assert
        assert delivered.status == OutboxStatus.PUBLISHED
        assert outbox.messages[message.message_id].status == OutboxStatus.PUBLISHED
        assert publisher.published == [
            {
                "topic": "booking-events",
                "event": message.payload,
                "deduplication_id": "saga-1#BookingCreationFailed",
                "group_key": "saga-1",
            }
        ]

    def test_unrecorded_message_is_published_only(self, publisher):
        mock_outbox = MagicMock()
        relay = OutboxRelay(outbox=mock_outbox, publisher=publisher)

        relay.deliver(failure_message("saga-1").unrecorded())

        assert len(publisher.published) == 1
        mock_outbox.mark_published.assert_not_called()

    def test_transport_failure_is_raised_and_message_stays_pending(self, outbox):
        # Arrange
        message = failure_message("saga-1")
        outbox.add(CommandOutcome(message=message))
        mock_publisher = MagicMock()
        mock_publisher.publish.side_effect = TransportException("bus down")
        relay = OutboxRelay(outbox=outbox, publisher=mock_publisher)

        # Act / Assert
        with pytest.raises(TransportException):
            relay.deliver(message)
        assert outbox.messages[message.message_id].status == OutboxStatus.PENDING

    def test_mark_published_failure_is_tolerated(self, publisher):
        mock_outbox = MagicMock()
        mock_outbox.mark_published.side_effect = PersistenceException("down")
        relay = OutboxRelay(outbox=mock_outbox, publisher=publisher)

        delivered = relay.deliver(failure_message("saga-1"))

        assert delivered.status == OutboxStatus.PENDING
        assert len(publisher.published) == 1

    def test_relay_pending_sends_oldest_first(self, outbox, publisher, now):
        later = now + timedelta(seconds=1)
        outbox.add(CommandOutcome(message=failure_message("saga-2", later)))
        outbox.add(CommandOutcome(message=failure_message("saga-1", now)))
        relay = OutboxRelay(outbox=outbox, publisher=publisher)

        assert relay.relay_pending(limit=10) == 2
        assert [p["group_key"] for p in publisher.published] == ["saga-1", "saga-2"]
        assert outbox.list_pending(10) == []

    def test_relay_pending_stops_at_first_failure(self, outbox):
        outbox.add(CommandOutcome(message=failure_message("saga-1")))
        outbox.add(CommandOutcome(message=failure_message("saga-2")))
        mock_publisher = MagicMock()
        mock_publisher.publish.side_effect = TransportException("bus down")
        relay = OutboxRelay(outbox=outbox, publisher=mock_publisher)

        assert relay.relay_pending(limit=10) == 0
        assert mock_publisher.publish.call_count == 1
