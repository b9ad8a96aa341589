from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from services.booking.domain.enum import FailureReason
from services.booking.domain.exception import RentalPeriodValidationException
from services.shared.utils.clock import ensure_utc

MIN_LEAD_TIME = timedelta(days=1)
MIN_RENTAL_DURATION = timedelta(days=1)
MAX_RENTAL_SPAN = relativedelta(months=2)


def validate_rental_period(start: datetime, end: datetime, now: datetime) -> None:
    """貸出期間を検証する

    上から順に評価し、最初に違反したルールで RentalPeriodValidationException を送出する。
    1. 開始は now の 1 日後以降
    2. 終了は開始の 1 日後以降
    3. 期間は 2 か月以内（開始 + 2 か月 >= 終了）
    """
    start, end, now = ensure_utc(start), ensure_utc(end), ensure_utc(now)

    if start < now + MIN_LEAD_TIME:
        raise RentalPeriodValidationException(
            FailureReason.START_DATE_TOO_SOON,
            start=start.isoformat(),
            now=now.isoformat(),
        )
    if end < start + MIN_RENTAL_DURATION:
        raise RentalPeriodValidationException(
            FailureReason.END_DATE_TOO_SOON,
            end=end.isoformat(),
            start=start.isoformat(),
        )
    if start + MAX_RENTAL_SPAN < end:
        raise RentalPeriodValidationException(
            FailureReason.RENTAL_PERIOD_TOO_LONG,
            start=start.isoformat(),
            end=end.isoformat(),
        )
