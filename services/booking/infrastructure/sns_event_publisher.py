import hashlib
import json
from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from services.booking.applications.event_publisher import EventPublisher
from services.shared.domain import TransportException

# SNS FIFO の MessageGroupId / MessageDeduplicationId の上限
MAX_ID_LENGTH = 128


def _fifo_id(value: str) -> str:
    if len(value) <= MAX_ID_LENGTH:
        return value
    return hashlib.sha256(value.encode()).hexdigest()


class SnsEventPublisher(EventPublisher):
    """SNS FIFO トピックへ結果イベントを送信する EventPublisher の具象実装"""

    def __init__(self, topic_arns: Mapping[str, str], client=None) -> None:
        self._topic_arns = dict(topic_arns)
        self._client = client or boto3.client("sns")

    def publish(
        self,
        topic: str,
        event: dict[str, Any],
        *,
        deduplication_id: str,
        group_key: str,
    ) -> None:
        """イベントを送信する"""
        topic_arn = self._topic_arns.get(topic)
        if not topic_arn:
            raise TransportException(f"No topic ARN configured for: {topic}")

        try:
            self._client.publish(
                TopicArn=topic_arn,
                Message=json.dumps(event, default=str),
                MessageGroupId=_fifo_id(group_key),
                MessageDeduplicationId=_fifo_id(deduplication_id),
                MessageAttributes={
                    "eventType": {
                        "DataType": "String",
                        "StringValue": str(event.get("eventType", "unknown")),
                    }
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise TransportException(f"Failed to publish to {topic}: {e}") from e
