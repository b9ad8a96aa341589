from datetime import datetime

from services.booking.domain.value_object import RentalPeriod
from services.shared.domain import Money


def calculate_total_price(rate_per_day: Money, start: datetime, end: datetime) -> Money:
    """日額 × 両端を含む日数

    検証済みの期間に対してのみ呼ぶこと（end >= start が前提）。
    """
    return rate_per_day.times(RentalPeriod(start=start, end=end).inclusive_days())
