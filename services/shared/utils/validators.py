from datetime import datetime
from decimal import Decimal, InvalidOperation

from services.shared.utils.clock import ensure_utc


def to_decimal(v: object) -> Decimal:
    """任意の値を Decimal に変換する

    Pydantic の field_validator (mode="before") から呼び出すことを想定。
    float は str 経由で変換して 2 進誤差を持ち込まない。
    """
    if isinstance(v, Decimal):
        return v
    try:
        return Decimal(str(v))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal value: {v}") from e


def to_utc(v: datetime) -> datetime:
    """field_validator (mode="after") 用: タイムゾーンなしの日時は UTC とみなす"""
    return ensure_utc(v)
