from services.booking.domain.enum import BookingStatus, FailureReason
from services.shared.domain.exception import (
    BusinessRuleViolationException,
    DomainException,
)


class BookingRuleViolationException(BusinessRuleViolationException):
    """FailureReason で分類された予約のルール違反"""

    def __init__(self, reason: FailureReason, **params: object) -> None:
        self.reason = reason
        self.params = params
        super().__init__(reason.render(**params))

    @property
    def message(self) -> str:
        return str(self)


class RentalPeriodValidationException(BookingRuleViolationException):
    """貸出期間が不正な場合"""

    pass


class InvalidStatusTransitionException(BookingRuleViolationException):
    """許可されていないステータス遷移"""

    def __init__(
        self, booking_id: object, current: BookingStatus, target: BookingStatus
    ) -> None:
        if current == BookingStatus.CANCELLED and target == BookingStatus.CANCELLED:
            super().__init__(
                FailureReason.BOOKING_ALREADY_CANCELLED, booking_id=booking_id
            )
        else:
            super().__init__(
                FailureReason.INVALID_STATUS_TRANSITION,
                booking_id=booking_id,
                current=current.value,
                target=target.value,
            )
        self.current = current
        self.target = target


class DuplicateCommandException(DomainException):
    """同じ冪等キーのコマンドが既に記録されている（条件付き書き込みの失敗時）"""

    def __init__(self, command_key: str) -> None:
        self.command_key = command_key
        super().__init__(f"Command already processed: {command_key}")


class InvalidCommandException(DomainException):
    """コマンドのペイロードを解釈できない場合"""

    def __init__(self, message: str, error_count: int = 1) -> None:
        self.error_count = error_count
        super().__init__(message)
