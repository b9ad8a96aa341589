from abc import ABC, abstractmethod
from typing import Any


class EventPublisher(ABC):
    """結果イベントの送信口

    送信はファイア・アンド・フォーゲット。送信側の受領確認は待たない。
    """

    @abstractmethod
    def publish(
        self,
        topic: str,
        event: dict[str, Any],
        *,
        deduplication_id: str,
        group_key: str,
    ) -> None:
        """イベントを送信する

        Raises:
            TransportException: 送信に失敗した
        """
        raise NotImplementedError
