from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from services.booking.domain.exception import InvalidCommandException
from services.shared.utils.validators import to_decimal, to_utc


class BookingCommandModel(BaseModel):
    """booking-commands の共通スキーマ"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    saga_transaction_id: str = Field(
        ...,
        min_length=1,
        description="Saga の相関ID（結果イベントにそのまま返す）",
        examples=["saga-123"],
    )


class CreateBookingCommand(BookingCommandModel):
    """予約作成コマンド"""

    command_type: Literal["CreateBooking"]

    car_id: str = Field(..., min_length=1, description="車両ID")

    requester_id: str = Field(..., min_length=1, description="依頼者ID")

    requester_contact: str = Field(
        ...,
        min_length=1,
        max_length=254,
        description="依頼者の連絡先（メールアドレス）",
        examples=["user@example.com"],
    )

    rate_per_day: Decimal = Field(..., ge=0, description="日額", examples=[100])

    rental_start: datetime = Field(
        ...,
        description="貸出開始（ISO 8601形式、タイムゾーンなしは UTC）",
        examples=["2025-01-03T10:00:00Z"],
    )

    rental_end: datetime = Field(
        ...,
        description="貸出終了（ISO 8601形式、タイムゾーンなしは UTC）",
        examples=["2025-01-05T10:00:00Z"],
    )

    @field_validator("rate_per_day", mode="before")
    @classmethod
    def convert_rate_to_decimal(cls, v):
        return to_decimal(v)

    @field_validator("rental_start", "rental_end", mode="after")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        return to_utc(v)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "commandType": "CreateBooking",
                    "sagaTransactionId": "saga-123",
                    "carId": "car-42",
                    "requesterId": "user-7",
                    "requesterContact": "user@example.com",
                    "ratePerDay": 100,
                    "rentalStart": "2025-01-03T10:00:00Z",
                    "rentalEnd": "2025-01-05T10:00:00Z",
                }
            ]
        }
    )


class CancelBookingCommand(BookingCommandModel):
    """予約キャンセルコマンド（補償トランザクション用）"""

    command_type: Literal["CancelBooking"]

    booking_id: str = Field(..., min_length=1, description="予約ID")


BookingCommand = Annotated[
    Union[CreateBookingCommand, CancelBookingCommand],
    Field(discriminator="command_type"),
]

_command_adapter: TypeAdapter[BookingCommand] = TypeAdapter(BookingCommand)


def parse_command(body: dict[str, Any]) -> CreateBookingCommand | CancelBookingCommand:
    """commandType でコマンドを判別してバリデーションする"""
    try:
        return _command_adapter.validate_python(body)
    except ValidationError as e:
        raise InvalidCommandException(
            f"Invalid booking command: {e.error_count()} validation error(s)",
            error_count=e.error_count(),
        ) from e
