from dataclasses import dataclass
from datetime import datetime

from services.shared.utils.clock import ensure_utc


@dataclass(frozen=True)
class RentalPeriod:
    """貸出期間（開始 + 終了）

    終了 >= 開始 を常に満たす。日時は UTC に正規化して保持する。
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end < self.start:
            raise ValueError("Rental end must not be before rental start")

    def inclusive_days(self) -> int:
        """両端を含む日数（2日目の同時刻までなら 2 日）"""
        return (self.end - self.start).days + 1
