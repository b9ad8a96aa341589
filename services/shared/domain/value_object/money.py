from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Money:
    """金額

    負の金額は存在しない。演算結果も Money として返す。
    """

    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")

    def __str__(self) -> str:
        return str(self.amount)

    def times(self, quantity: int) -> Money:
        """数量を掛ける（日額 × 日数 など）"""
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")
        return Money(amount=self.amount * quantity)
