from datetime import timezone
from decimal import Decimal

import pytest

from services.booking.domain.exception import InvalidCommandException
from services.booking.handlers.request_models import (
    CancelBookingCommand,
    CreateBookingCommand,
    parse_command,
)


def create_body(**overrides):
    body = {
        "commandType": "CreateBooking",
        "sagaTransactionId": "saga-123",
        "carId": "car-42",
        "requesterId": "user-7",
        "requesterContact": "user@example.com",
        "ratePerDay": 100,
        "rentalStart": "2025-01-03T10:00:00",
        "rentalEnd": "2025-01-05T10:00:00Z",
    }
    body.update(overrides)
    return body


class TestParseCommand:
    def test_parse_create_command(self):
        command = parse_command(create_body())

        assert isinstance(command, CreateBookingCommand)
        assert command.saga_transaction_id == "saga-123"
        assert command.rate_per_day == Decimal("100")
        assert command.rental_start.tzinfo == timezone.utc
        assert command.rental_end.tzinfo == timezone.utc

    def test_float_rate_is_converted_without_binary_error(self):
        command = parse_command(create_body(ratePerDay=49.99))
        assert command.rate_per_day == Decimal("49.99")

    def test_parse_cancel_command(self):
        command = parse_command(
            {
                "commandType": "CancelBooking",
                "sagaTransactionId": "saga-123",
                "bookingId": "booking-1",
            }
        )

        assert isinstance(command, CancelBookingCommand)
        assert command.booking_id == "booking-1"

    @pytest.mark.parametrize(
        "body",
        [
            {"commandType": "DeleteBooking", "sagaTransactionId": "saga-123"},
            {"sagaTransactionId": "saga-123", "bookingId": "booking-1"},
            {"commandType": "CancelBooking", "sagaTransactionId": "saga-123"},
            {"commandType": "CancelBooking", "bookingId": "booking-1"},
        ],
    )
    def test_malformed_command_is_rejected(self, body):
        with pytest.raises(InvalidCommandException):
            parse_command(body)

    def test_negative_rate_is_rejected(self):
        with pytest.raises(InvalidCommandException):
            parse_command(create_body(ratePerDay=-1))

    def test_invalid_rate_is_rejected(self):
        with pytest.raises(InvalidCommandException):
            parse_command(create_body(ratePerDay="abc"))


class TestCreateBookingCommandSchema:
    def test_schema_keeps_camel_case_aliases_and_example(self):
        """json_schema_extra を追加しても camelCase のエイリアスは継承される"""
        schema = CreateBookingCommand.model_json_schema()

        assert "ratePerDay" in schema["properties"]
        assert schema["examples"][0]["commandType"] == "CreateBooking"
        assert CreateBookingCommand.model_config["populate_by_name"] is True
