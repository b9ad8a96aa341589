import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from services.booking.infrastructure.sns_event_publisher import SnsEventPublisher
from services.shared.domain import TransportException

TOPIC_ARN = "arn:aws:sns:ap-northeast-1:123456789012:booking-events.fifo"


class TestSnsEventPublisher:
    def test_publish_to_fifo_topic(self):
        # Arrange
        mock_client = MagicMock()
        publisher = SnsEventPublisher({"booking-events": TOPIC_ARN}, client=mock_client)
        event = {"eventType": "BookingCreated", "sagaTransactionId": "saga-123"}

        # Act
        publisher.publish(
            "booking-events",
            event,
            deduplication_id="saga-123#b-1#BookingCreated",
            group_key="b-1",
        )

        # Assert
        kwargs = mock_client.publish.call_args.kwargs
        assert kwargs["TopicArn"] == TOPIC_ARN
        assert json.loads(kwargs["Message"]) == event
        assert kwargs["MessageGroupId"] == "b-1"
        assert kwargs["MessageDeduplicationId"] == "saga-123#b-1#BookingCreated"
        assert kwargs["MessageAttributes"]["eventType"]["StringValue"] == "BookingCreated"

    def test_long_ids_are_hashed(self):
        mock_client = MagicMock()
        publisher = SnsEventPublisher({"booking-events": TOPIC_ARN}, client=mock_client)

        publisher.publish("booking-events", {}, deduplication_id="x" * 200, group_key="g")

        dedup_id = mock_client.publish.call_args.kwargs["MessageDeduplicationId"]
        assert len(dedup_id) == 64

    def test_unknown_topic(self):
        publisher = SnsEventPublisher({}, client=MagicMock())
        with pytest.raises(TransportException):
            publisher.publish("booking-events", {}, deduplication_id="d", group_key="g")

    def test_client_error_raises_transport_exception(self):
        mock_client = MagicMock()
        mock_client.publish.side_effect = ClientError(
            {"Error": {"Code": "InternalError"}}, "Publish"
        )
        publisher = SnsEventPublisher({"booking-events": TOPIC_ARN}, client=mock_client)

        with pytest.raises(TransportException):
            publisher.publish("booking-events", {}, deduplication_id="d", group_key="g")
