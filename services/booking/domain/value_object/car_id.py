from dataclasses import dataclass


@dataclass(frozen=True)
class CarId:
    """貸出対象の車両ID"""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("CarId cannot be empty")

    def __str__(self) -> str:
        return self.value
