from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from services.booking.domain.enum import CommandType, OutboxStatus
from services.booking.domain.event import BookingEvent
from services.shared.domain import SagaTransactionId
from services.shared.utils.clock import utc_now


def command_key_for(
    saga_transaction_id: SagaTransactionId, command_type: CommandType
) -> str:
    """処理済みコマンドの冪等キー（sagaTransactionId + コマンド種別）"""
    return f"{saga_transaction_id}#{command_type.value}"


@dataclass(frozen=True)
class OutboxMessage:
    """送信待ちの結果イベント

    message_id は (saga, 対象予約, イベント種別) から決まるので、
    同じメッセージを何度送ってもバス側で重複排除できる。
    """

    message_id: str
    topic: str
    event_type: str
    saga_transaction_id: str
    payload: dict[str, Any]
    group_key: str
    status: OutboxStatus = OutboxStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    recorded: bool = True

    @classmethod
    def for_event(
        cls,
        topic: str,
        event: BookingEvent,
        subject: object | None = None,
        created_at: datetime | None = None,
    ) -> OutboxMessage:
        """イベントから Outbox メッセージを組み立てる

        Args:
            topic: 送信先の論理トピック名
            event: 結果イベント
            subject: 対象予約の ID（作成失敗のように存在しない場合は None）
        """
        payload = event.to_payload()
        event_type = payload["eventType"]
        saga_id = event.saga_transaction_id
        key_parts = [saga_id, str(subject), event_type] if subject else [saga_id, event_type]
        return cls(
            message_id="#".join(key_parts),
            topic=topic,
            event_type=event_type,
            saga_transaction_id=saga_id,
            payload=payload,
            group_key=str(subject) if subject else saga_id,
            created_at=created_at or utc_now(),
        )

    def mark_published(self) -> OutboxMessage:
        return replace(self, status=OutboxStatus.PUBLISHED)

    def unrecorded(self) -> OutboxMessage:
        """ストアに記録できなかったメッセージとして扱う"""
        return replace(self, recorded=False)


@dataclass(frozen=True)
class CommandOutcome:
    """コマンド 1 件の処理結果

    状態変更と同じトランザクションで書き込む単位。
    command_key が None の場合は処理済みコマンドを記録しない（冪等性なし）。
    """

    message: OutboxMessage
    command_key: str | None = None
