from enum import Enum


class FailureReason(str, Enum):
    """失敗イベントに載せる理由（閉じた集合）

    理由文は各メンバーのテンプレートからのみ生成し、
    例外メッセージをそのまま流用しない。
    """

    START_DATE_TOO_SOON = "START_DATE_TOO_SOON"
    END_DATE_TOO_SOON = "END_DATE_TOO_SOON"
    RENTAL_PERIOD_TOO_LONG = "RENTAL_PERIOD_TOO_LONG"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    BOOKING_ALREADY_CANCELLED = "BOOKING_ALREADY_CANCELLED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    PERSISTENCE_UNAVAILABLE = "PERSISTENCE_UNAVAILABLE"
    INVALID_COMMAND = "INVALID_COMMAND"

    @property
    def template(self) -> str:
        return _TEMPLATES[self]

    def render(self, **params: object) -> str:
        """テンプレートに値を埋め込んだ理由文を返す"""
        return self.template.format(**params)


_TEMPLATES: dict[FailureReason, str] = {
    FailureReason.START_DATE_TOO_SOON: (
        "Start date {start} must be at least one day after now {now}"
    ),
    FailureReason.END_DATE_TOO_SOON: (
        "End date {end} must be at least one day after start date {start}"
    ),
    FailureReason.RENTAL_PERIOD_TOO_LONG: (
        "Booking duration should not exceed 2 months. "
        "Start date {start}, End date {end}"
    ),
    FailureReason.BOOKING_NOT_FOUND: "Booking not found with ID: {booking_id}",
    FailureReason.BOOKING_ALREADY_CANCELLED: "Booking {booking_id} is already cancelled",
    FailureReason.INVALID_STATUS_TRANSITION: (
        "Booking {booking_id} cannot move from {current} to {target}"
    ),
    FailureReason.CONCURRENT_MODIFICATION: (
        "Booking {booking_id} was modified concurrently"
    ),
    FailureReason.PERSISTENCE_UNAVAILABLE: "Booking store unavailable",
    FailureReason.INVALID_COMMAND: (
        "Command payload failed validation with {errors} error(s)"
    ),
}
