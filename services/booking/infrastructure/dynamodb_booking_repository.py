import os
from datetime import datetime
from decimal import Decimal

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from services.booking.domain.entity import Booking
from services.booking.domain.enum import BookingStatus
from services.booking.domain.exception import DuplicateCommandException
from services.booking.domain.outbox import CommandOutcome
from services.booking.domain.repository import BookingRepository
from services.booking.domain.value_object import (
    BookingId,
    CarId,
    RentalPeriod,
    Requester,
)
from services.booking.infrastructure.dynamodb_outbox_repository import (
    outcome_transact_items,
)
from services.booking.infrastructure.dynamodb_support import (
    CONDITIONAL_CHECK_FAILED,
    error_code,
    transact_write,
)
from services.shared.domain import Money
from services.shared.domain.exception.exceptions import (
    DuplicateResourceException,
    OptimisticLockException,
    PersistenceException,
    ResourceNotFoundException,
)


def booking_key(booking_id: BookingId) -> dict:
    return {"PK": f"BOOKING#{booking_id}", "SK": "BOOKING"}


class DynamoDBBookingRepository(BookingRepository):
    """DynamoDBを使用したBookingRepository の具象実装"""

    def __init__(self, table_name: str | None = None, table=None) -> None:
        self.table_name = table_name or os.getenv("TABLE_NAME")
        if table is None:
            table = boto3.resource("dynamodb").Table(self.table_name)
        self.table = table
        self.client = table.meta.client

    def save(self, booking: Booking, outcome: CommandOutcome | None = None) -> None:
        """予約をDBに保存する"""
        item = self._to_item(booking)

        if outcome is None:
            try:
                self.table.put_item(
                    Item=item, ConditionExpression=Attr("PK").not_exists()
                )
            except ClientError as e:
                if error_code(e) == CONDITIONAL_CHECK_FAILED:
                    raise DuplicateResourceException(
                        f"Booking already exists: {booking.id}"
                    ) from e
                raise PersistenceException(f"Failed to save booking: {e}") from e
            except BotoCoreError as e:
                raise PersistenceException(f"Failed to save booking: {e}") from e
            return

        def on_conflict(index: int, reason: dict) -> Exception:
            if index == 0:
                return DuplicateResourceException(f"Booking already exists: {booking.id}")
            return DuplicateCommandException(outcome.command_key or "")

        transact_write(
            self.client,
            [
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": item,
                        "ConditionExpression": "attribute_not_exists(PK)",
                    }
                },
                *outcome_transact_items(self.table_name, outcome),
            ],
            on_conflict,
        )

    def update(
        self,
        booking: Booking,
        expected_version: int,
        outcome: CommandOutcome | None = None,
    ) -> None:
        """保存済みの version が一致する場合のみ予約を置き換える"""
        item = self._to_item(booking)

        def conflict(old_item: dict | None) -> Exception:
            if not old_item:
                return ResourceNotFoundException(
                    f"Booking not found with ID: {booking.id}"
                )
            return OptimisticLockException(
                f"Booking version conflict: expected {expected_version}, "
                f"actual {old_item.get('version')}, booking_id={booking.id}"
            )

        if outcome is None:
            try:
                self.table.put_item(
                    Item=item,
                    ConditionExpression=Attr("version").eq(expected_version),
                    ReturnValuesOnConditionCheckFailure="ALL_OLD",
                )
            except ClientError as e:
                if error_code(e) == CONDITIONAL_CHECK_FAILED:
                    raise conflict(e.response.get("Item")) from e
                raise PersistenceException(f"Failed to update booking: {e}") from e
            except BotoCoreError as e:
                raise PersistenceException(f"Failed to update booking: {e}") from e
            return

        def on_conflict(index: int, reason: dict) -> Exception:
            if index == 0:
                return conflict(reason.get("Item"))
            return DuplicateCommandException(outcome.command_key or "")

        transact_write(
            self.client,
            [
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": item,
                        "ConditionExpression": "version = :expected_version",
                        "ExpressionAttributeValues": {
                            ":expected_version": expected_version
                        },
                        "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
                    }
                },
                *outcome_transact_items(self.table_name, outcome),
            ],
            on_conflict,
        )

    def find_by_id(self, booking_id: BookingId) -> Booking | None:
        """予約IDで検索"""
        try:
            response = self.table.get_item(
                Key=booking_key(booking_id), ConsistentRead=True
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceException(f"Failed to read booking: {e}") from e
        item = response.get("Item")
        if not item:
            return None
        return self._to_entity(item)

    def exists_by_id(self, booking_id: BookingId) -> bool:
        try:
            response = self.table.get_item(
                Key=booking_key(booking_id),
                ProjectionExpression="PK",
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceException(f"Failed to read booking: {e}") from e
        return "Item" in response

    def list_all(self) -> list[Booking]:
        """全予約を作成日時順に取得する"""
        kwargs: dict = {
            "IndexName": "GSI1",
            "KeyConditionExpression": Key("GSI1PK").eq("BOOKINGS"),
        }
        bookings: list[Booking] = []
        try:
            while True:
                response = self.table.query(**kwargs)
                bookings.extend(self._to_entity(i) for i in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return bookings
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            raise PersistenceException(f"Failed to list bookings: {e}") from e

    def delete_by_id(self, booking_id: BookingId) -> None:
        try:
            self.table.delete_item(
                Key=booking_key(booking_id),
                ConditionExpression=Attr("PK").exists(),
            )
        except ClientError as e:
            if error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise ResourceNotFoundException(
                    f"Booking not found with ID: {booking_id}"
                ) from e
            raise PersistenceException(f"Failed to delete booking: {e}") from e
        except BotoCoreError as e:
            raise PersistenceException(f"Failed to delete booking: {e}") from e

    def _to_item(self, booking: Booking) -> dict:
        """ドメインエンティティを DynamoDB アイテムに変換する"""
        return {
            **booking_key(booking.id),
            "entity_type": "BOOKING",
            "booking_id": str(booking.id),
            "car_id": str(booking.car_id),
            "requester_id": booking.requester.requester_id,
            "requester_contact": booking.requester.contact,
            "rental_start": booking.rental_period.start.isoformat(),
            "rental_end": booking.rental_period.end.isoformat(),
            "total_price": str(booking.total_price.amount),
            "status": booking.status.value,
            "created_at": booking.created_at.isoformat(),
            "updated_at": booking.updated_at.isoformat(),
            "version": booking.version,
            "GSI1PK": "BOOKINGS",
            "GSI1SK": f"{booking.created_at.isoformat()}#{booking.id}",
        }

    def _to_entity(self, item: dict) -> Booking:
        """DynamoDB アイテムをドメインエンティティに変換する"""
        return Booking(
            id=BookingId(value=item["booking_id"]),
            car_id=CarId(value=item["car_id"]),
            requester=Requester(
                requester_id=item["requester_id"],
                contact=item["requester_contact"],
            ),
            rental_period=RentalPeriod(
                start=datetime.fromisoformat(item["rental_start"]),
                end=datetime.fromisoformat(item["rental_end"]),
            ),
            total_price=Money(Decimal(item["total_price"])),
            status=BookingStatus(item["status"]),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
            version=int(item["version"]),
        )
