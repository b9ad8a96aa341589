from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from services.booking.domain.enum import BookingStatus
from services.booking.domain.event import BookingCancelledEvent
from services.booking.domain.exception import DuplicateCommandException
from services.booking.domain.outbox import CommandOutcome, OutboxMessage
from services.booking.domain.value_object import BookingId
from services.booking.infrastructure.dynamodb_booking_repository import (
    DynamoDBBookingRepository,
)
from services.shared.domain import (
    DuplicateResourceException,
    OptimisticLockException,
    PersistenceException,
    ResourceNotFoundException,
    SagaTransactionId,
)


def client_error(code: str, operation: str = "PutItem", **response) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}, **response}, operation)


def cancelled_outcome(booking) -> CommandOutcome:
    saga = SagaTransactionId(value="saga-123")
    return CommandOutcome(
        message=OutboxMessage.for_event(
            "booking-events",
            BookingCancelledEvent.from_booking(saga, booking),
            subject=booking.id,
        ),
        command_key="saga-123#CancelBooking",
    )


@pytest.fixture
def mock_table():
    return MagicMock()


@pytest.fixture
def repository(mock_table):
    return DynamoDBBookingRepository(table_name="bookings", table=mock_table)


class TestDynamoDBBookingRepository:
    def test_save_puts_item_if_absent(self, repository, mock_table, create_booking):
        # Act
        repository.save(create_booking())

        # Assert
        mock_table.put_item.assert_called_once()
        item = mock_table.put_item.call_args.kwargs["Item"]
        assert item["PK"] == "BOOKING#booking-1"
        assert item["SK"] == "BOOKING"
        assert item["status"] == "PENDING"
        assert item["total_price"] == "300"
        assert item["version"] == 0
        assert "ConditionExpression" in mock_table.put_item.call_args.kwargs

    def test_save_existing_booking_raises_duplicate(
        self, repository, mock_table, create_booking
    ):
        mock_table.put_item.side_effect = client_error("ConditionalCheckFailedException")

        with pytest.raises(DuplicateResourceException):
            repository.save(create_booking())

    def test_save_with_outcome_writes_one_transaction(
        self, repository, mock_table, create_booking
    ):
        """予約・結果イベント・処理済みコマンドを 1 トランザクションで書き込む"""
        booking = create_booking()

        repository.save(booking, cancelled_outcome(booking))

        mock_table.put_item.assert_not_called()
        items = mock_table.meta.client.transact_write_items.call_args.kwargs[
            "TransactItems"
        ]
        assert [i["Put"]["Item"]["PK"] for i in items] == [
            "BOOKING#booking-1",
            "OUTBOX#saga-123#booking-1#BookingCancelled",
            "COMMAND#saga-123#CancelBooking",
        ]
        assert all(i["Put"]["TableName"] == "bookings" for i in items)

    def test_save_with_processed_command_raises_duplicate_command(
        self, repository, mock_table, create_booking
    ):
        booking = create_booking()
        mock_table.meta.client.transact_write_items.side_effect = client_error(
            "TransactionCanceledException",
            "TransactWriteItems",
            CancellationReasons=[
                {"Code": "None"},
                {"Code": "None"},
                {"Code": "ConditionalCheckFailed"},
            ],
        )

        with pytest.raises(DuplicateCommandException) as exc_info:
            repository.save(booking, cancelled_outcome(booking))
        assert exc_info.value.command_key == "saga-123#CancelBooking"

    def test_update_checks_expected_version(
        self, repository, mock_table, create_booking
    ):
        booking = create_booking(version=2)

        repository.update(booking, expected_version=1)

        kwargs = mock_table.put_item.call_args.kwargs
        assert kwargs["Item"]["version"] == 2
        assert kwargs["ReturnValuesOnConditionCheckFailure"] == "ALL_OLD"

    def test_update_missing_booking_raises_not_found(
        self, repository, mock_table, create_booking
    ):
        mock_table.put_item.side_effect = client_error("ConditionalCheckFailedException")

        with pytest.raises(ResourceNotFoundException):
            repository.update(create_booking(version=1), expected_version=0)

    def test_update_stale_version_raises_optimistic_lock(
        self, repository, mock_table, create_booking
    ):
        mock_table.put_item.side_effect = client_error(
            "ConditionalCheckFailedException", Item={"version": 5}
        )

        with pytest.raises(OptimisticLockException):
            repository.update(create_booking(version=1), expected_version=0)

    def test_update_in_transaction_conflict(
        self, repository, mock_table, create_booking
    ):
        booking = create_booking(version=1)
        mock_table.meta.client.transact_write_items.side_effect = client_error(
            "TransactionCanceledException",
            "TransactWriteItems",
            CancellationReasons=[
                {"Code": "ConditionalCheckFailed", "Item": {"version": 3}},
                {"Code": "None"},
                {"Code": "None"},
            ],
        )

        with pytest.raises(OptimisticLockException):
            repository.update(booking, expected_version=0, outcome=cancelled_outcome(booking))

    def test_store_unavailable_raises_persistence_exception(
        self, repository, mock_table, create_booking
    ):
        mock_table.put_item.side_effect = EndpointConnectionError(endpoint_url="x")

        with pytest.raises(PersistenceException):
            repository.update(create_booking(version=1), expected_version=0)

    def test_find_by_id_maps_item(self, repository, mock_table, create_booking):
        # Arrange
        booking = create_booking(status=BookingStatus.CONFIRMED, version=1)
        mock_table.put_item.reset_mock()
        repository.save(booking)
        mock_table.get_item.return_value = {
            "Item": mock_table.put_item.call_args.kwargs["Item"]
        }

        # Act
        found = repository.find_by_id(BookingId(value="booking-1"))

        # Assert
        assert found == booking
        assert found.status == BookingStatus.CONFIRMED
        assert found.total_price == booking.total_price
        assert found.rental_period == booking.rental_period
        assert found.version == 1

    def test_find_by_id_returns_none(self, repository, mock_table):
        mock_table.get_item.return_value = {}
        assert repository.find_by_id(BookingId(value="missing")) is None

    def test_list_all_follows_pagination(self, repository, mock_table, create_booking):
        repository.save(create_booking(booking_id="a"))
        item_a = mock_table.put_item.call_args.kwargs["Item"]
        repository.save(create_booking(booking_id="b"))
        item_b = mock_table.put_item.call_args.kwargs["Item"]
        mock_table.query.side_effect = [
            {"Items": [item_a], "LastEvaluatedKey": {"PK": "x"}},
            {"Items": [item_b]},
        ]

        bookings = repository.list_all()

        assert [str(b.id) for b in bookings] == ["a", "b"]
        assert mock_table.query.call_args.kwargs["ExclusiveStartKey"] == {"PK": "x"}

    def test_delete_missing_booking_raises_not_found(self, repository, mock_table):
        mock_table.delete_item.side_effect = client_error(
            "ConditionalCheckFailedException", "DeleteItem"
        )

        with pytest.raises(ResourceNotFoundException):
            repository.delete_by_id(BookingId(value="missing"))
