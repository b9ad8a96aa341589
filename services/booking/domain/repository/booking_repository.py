from abc import abstractmethod

from services.booking.domain.entity import Booking
from services.booking.domain.outbox import CommandOutcome
from services.booking.domain.value_object import BookingId
from services.shared.domain import Repository


class BookingRepository(Repository[Booking, BookingId]):
    """レンタカー予約レポジトリ

    outcome を渡した場合、予約と結果イベント（と処理済みコマンド）を
    1 つのトランザクションで書き込む。
    """

    @abstractmethod
    def find_by_id(self, booking_id: BookingId) -> Booking | None:
        """予約IDで検索"""
        raise NotImplementedError

    @abstractmethod
    def exists_by_id(self, booking_id: BookingId) -> bool:
        """予約が存在するか"""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Booking]:
        """全ての予約"""
        raise NotImplementedError

    @abstractmethod
    def save(self, booking: Booking, outcome: CommandOutcome | None = None) -> None:
        """新規に永続化する（同じIDが存在すれば DuplicateResourceException）"""
        raise NotImplementedError

    @abstractmethod
    def update(
        self,
        booking: Booking,
        expected_version: int,
        outcome: CommandOutcome | None = None,
    ) -> None:
        """保存済みの version が expected_version と一致する場合のみ更新する

        Raises:
            ResourceNotFoundException: 予約が存在しない
            OptimisticLockException: version が一致しない
        """
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, booking_id: BookingId) -> None:
        """削除する（存在しなければ ResourceNotFoundException）"""
        raise NotImplementedError
