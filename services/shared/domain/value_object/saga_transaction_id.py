from dataclasses import dataclass


@dataclass(frozen=True)
class SagaTransactionId:
    """Saga の相関ID（オーケストレーターが発行する）

    中身は不透明な文字列として扱い、結果イベントにそのまま返す。
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("SagaTransactionId cannot be empty")

    def __str__(self) -> str:
        return self.value
