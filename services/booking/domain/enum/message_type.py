from enum import Enum


class CommandType(str, Enum):
    """booking-commands で受け取るコマンド種別"""

    CREATE_BOOKING = "CreateBooking"
    CANCEL_BOOKING = "CancelBooking"

