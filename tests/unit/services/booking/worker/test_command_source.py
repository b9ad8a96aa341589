import pytest

from services.booking.domain.exception import InvalidCommandException
from services.booking.worker.command_source import CommandMessage


def message(body: str) -> CommandMessage:
    return CommandMessage(message_id="m-1", body=body, group_key="g", receipt_handle="r")


class TestCommandMessage:
    def test_json_body(self):
        assert message('{"commandType": "CancelBooking"}').json_body() == {
            "commandType": "CancelBooking"
        }

    @pytest.mark.parametrize("body", ["not json", "[1, 2]"])
    def test_invalid_body(self, body):
        with pytest.raises(InvalidCommandException):
            message(body).json_body()
