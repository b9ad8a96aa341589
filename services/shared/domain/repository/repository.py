from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")
ID = TypeVar("ID")


class Repository(ABC, Generic[T, ID]):
    """Repository 基底クラス

    - 集約の永続化を抽象化する
    - 集約単位でしか読み書きしない
    """

    @abstractmethod
    def find_by_id(self, id: ID) -> T | None:
        """IDで集約を検索する"""
        raise NotImplementedError

    @abstractmethod
    def exists_by_id(self, id: ID) -> bool:
        """IDの集約が存在するか"""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[T]:
        """全ての集約を取得する"""
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, id: ID) -> None:
        """集約を削除する（存在しない場合は ResourceNotFoundException）"""
        raise NotImplementedError
