from enum import Enum


class OutboxStatus(str, Enum):
    """Outbox メッセージの送信状態"""

    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
