from abc import ABC, abstractmethod

from services.booking.domain.outbox import CommandOutcome, OutboxMessage


class OutboxRepository(ABC):
    """結果イベントの Outbox と処理済みコマンドの索引"""

    @abstractmethod
    def add(self, outcome: CommandOutcome) -> None:
        """状態変更を伴わない結果（失敗イベントなど）を記録する

        Raises:
            DuplicateCommandException: 同じ冪等キーが既に記録されている
        """
        raise NotImplementedError

    @abstractmethod
    def find_by_command_key(self, command_key: str) -> OutboxMessage | None:
        """処理済みコマンドに対応する結果イベントを返す"""
        raise NotImplementedError

    @abstractmethod
    def list_pending(self, limit: int) -> list[OutboxMessage]:
        """未送信のメッセージを作成日時の古い順に返す"""
        raise NotImplementedError

    @abstractmethod
    def mark_published(self, message_id: str) -> None:
        """送信済みにする"""
        raise NotImplementedError
