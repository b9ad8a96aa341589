import json
import os
from datetime import datetime, timezone

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from services.booking.domain.enum import OutboxStatus
from services.booking.domain.exception import DuplicateCommandException
from services.booking.domain.outbox import CommandOutcome, OutboxMessage
from services.booking.domain.repository import OutboxRepository
from services.booking.infrastructure.dynamodb_support import (
    CONDITIONAL_CHECK_FAILED,
    error_code,
    transact_write,
)
from services.shared.domain import PersistenceException, ResourceNotFoundException

PENDING_PARTITION = "OUTBOX#PENDING"


def outbox_key(message_id: str) -> dict:
    return {"PK": f"OUTBOX#{message_id}", "SK": "OUTBOX"}


def command_key(key: str) -> dict:
    return {"PK": f"COMMAND#{key}", "SK": "COMMAND"}


def outcome_transact_items(table_name: str, outcome: CommandOutcome) -> list[dict]:
    """結果イベント（と処理済みコマンド）を書き込むトランザクション項目

    処理済みコマンドは条件付き Put なので、同じコマンドの二重処理は
    トランザクションごと取り消される。
    """
    message = outcome.message
    item = {
        **outbox_key(message.message_id),
        "entity_type": "OUTBOX",
        "message_id": message.message_id,
        "topic": message.topic,
        "event_type": message.event_type,
        "saga_transaction_id": message.saga_transaction_id,
        "group_key": message.group_key,
        "payload": json.dumps(message.payload, default=str),
        "status": OutboxStatus.PENDING.value,
        "created_at": message.created_at.isoformat(),
        "GSI1PK": PENDING_PARTITION,
        "GSI1SK": f"{message.created_at.isoformat()}#{message.message_id}",
    }
    items: list[dict] = [{"Put": {"TableName": table_name, "Item": item}}]
    if outcome.command_key is not None:
        items.append(
            {
                "Put": {
                    "TableName": table_name,
                    "Item": {
                        **command_key(outcome.command_key),
                        "entity_type": "COMMAND",
                        "command_key": outcome.command_key,
                        "message_id": message.message_id,
                        "processed_at": message.created_at.isoformat(),
                    },
                    "ConditionExpression": "attribute_not_exists(PK)",
                }
            }
        )
    return items


class DynamoDBOutboxRepository(OutboxRepository):
    """DynamoDBを使用したOutboxRepository の具象実装"""

    def __init__(self, table_name: str | None = None, table=None) -> None:
        self.table_name = table_name or os.getenv("TABLE_NAME")
        if table is None:
            table = boto3.resource("dynamodb").Table(self.table_name)
        self.table = table
        self.client = table.meta.client

    def add(self, outcome: CommandOutcome) -> None:
        """結果イベントを記録する"""
        items = outcome_transact_items(self.table_name, outcome)
        if len(items) == 1:
            try:
                self.table.put_item(Item=items[0]["Put"]["Item"])
            except (ClientError, BotoCoreError) as e:
                raise PersistenceException(f"Failed to write outbox: {e}") from e
            return

        def on_conflict(index: int, reason: dict) -> Exception:
            return DuplicateCommandException(outcome.command_key or "")

        transact_write(self.client, items, on_conflict)

    def find_by_command_key(self, key: str) -> OutboxMessage | None:
        """処理済みコマンドの結果イベントを検索する"""
        try:
            command = self.table.get_item(
                Key=command_key(key), ConsistentRead=True
            ).get("Item")
            if not command:
                return None
            item = self.table.get_item(
                Key=outbox_key(command["message_id"]), ConsistentRead=True
            ).get("Item")
        except (ClientError, BotoCoreError) as e:
            raise PersistenceException(f"Failed to read outbox: {e}") from e
        if not item:
            return None
        return self._to_message(item)

    def list_pending(self, limit: int) -> list[OutboxMessage]:
        """未送信メッセージを作成日時順に取得する"""
        try:
            response = self.table.query(
                IndexName="GSI1",
                KeyConditionExpression=Key("GSI1PK").eq(PENDING_PARTITION),
                ScanIndexForward=True,
                Limit=limit,
            )
        except (ClientError, BotoCoreError) as e:
            raise PersistenceException(f"Failed to query outbox: {e}") from e
        return [self._to_message(item) for item in response.get("Items", [])]

    def mark_published(self, message_id: str) -> None:
        """送信済みにし、未送信インデックスから外す"""
        try:
            self.table.update_item(
                Key=outbox_key(message_id),
                UpdateExpression=(
                    "SET #status = :published, published_at = :now "
                    "REMOVE GSI1PK, GSI1SK"
                ),
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":published": OutboxStatus.PUBLISHED.value,
                    ":now": datetime.now(timezone.utc).isoformat(),
                },
                ConditionExpression=Attr("PK").exists(),
            )
        except ClientError as e:
            if error_code(e) == CONDITIONAL_CHECK_FAILED:
                raise ResourceNotFoundException(
                    f"Outbox message not found: {message_id}"
                ) from e
            raise PersistenceException(f"Failed to update outbox: {e}") from e
        except BotoCoreError as e:
            raise PersistenceException(f"Failed to update outbox: {e}") from e

    def _to_message(self, item: dict) -> OutboxMessage:
        """DynamoDB アイテムを OutboxMessage に変換する"""
        return OutboxMessage(
            message_id=item["message_id"],
            topic=item["topic"],
            event_type=item["event_type"],
            saga_transaction_id=item["saga_transaction_id"],
            payload=json.loads(item["payload"]),
            group_key=item["group_key"],
            status=OutboxStatus(item["status"]),
            created_at=datetime.fromisoformat(item["created_at"]),
        )
