from typing import TypeVar

from .entity import Entity

ID = TypeVar("ID")


class AggregateRoot(Entity[ID]):
    """AggregateRoot 基底クラス

    - トランザクション境界 = 集約境界
    - version は楽観ロック (compare-and-swap) の比較対象。
      状態遷移が受理されるたびに 1 ずつ進む
    """

    def __init__(self, id: ID, version: int = 0) -> None:
        super().__init__(id)
        if version < 0:
            raise ValueError("Version cannot be negative")
        self._version = version

    @property
    def version(self) -> int:
        return self._version

    def _bump_version(self) -> None:
        self._version += 1
