from enum import Enum


class RecancelPolicy(str, Enum):
    """CANCELLED 済み予約へのキャンセル要求の扱い"""

    # BookingCancellationFailed (BOOKING_ALREADY_CANCELLED) を返す
    FAIL = "fail"
    # 書き込みなしで BookingCancelled を再度返す
    SUCCEED = "succeed"
