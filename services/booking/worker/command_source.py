import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from services.booking.domain.exception import InvalidCommandException


@dataclass(frozen=True)
class CommandMessage:
    """バスから受け取ったコマンド 1 件"""

    message_id: str
    body: str
    group_key: str
    receipt_handle: str

    def json_body(self) -> dict[str, Any]:
        try:
            body = json.loads(self.body)
        except json.JSONDecodeError as e:
            raise InvalidCommandException(f"Command body is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise InvalidCommandException("Command body must be a JSON object")
        return body


class CommandSource(ABC):
    """順序付き・少なくとも 1 回配信のコマンドチャネル"""

    @abstractmethod
    def receive(self) -> list[CommandMessage]:
        """次のバッチを受け取る（無ければ空リスト）"""
        raise NotImplementedError

    @abstractmethod
    def ack(self, message: CommandMessage) -> None:
        """処理済みとしてチャネルから取り除く"""
        raise NotImplementedError

    @abstractmethod
    def release(self, message: CommandMessage) -> None:
        """未処理のままチャネルに戻す（再配信させる）"""
        raise NotImplementedError
