import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from services.booking.worker.command_source import CommandMessage, CommandSource

logger = Logger()


class SqsCommandSource(CommandSource):
    """SQS FIFO キューから booking-commands を受け取る CommandSource の具象実装

    MessageGroupId がパーティションキー（予約 / Saga 単位）になる。
    """

    def __init__(
        self,
        queue_url: str,
        client=None,
        max_messages: int = 10,
        wait_time_seconds: int = 20,
    ) -> None:
        self._queue_url = queue_url
        self._client = client or boto3.client("sqs")
        self._max_messages = max_messages
        self._wait_time_seconds = wait_time_seconds

    def receive(self) -> list[CommandMessage]:
        try:
            response = self._client.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=self._max_messages,
                WaitTimeSeconds=self._wait_time_seconds,
                MessageSystemAttributeNames=["MessageGroupId"],
            )
        except (ClientError, BotoCoreError):
            logger.exception("Failed to receive booking commands")
            return []

        return [
            CommandMessage(
                message_id=m["MessageId"],
                body=m["Body"],
                group_key=m.get("Attributes", {}).get("MessageGroupId", m["MessageId"]),
                receipt_handle=m["ReceiptHandle"],
            )
            for m in response.get("Messages", [])
        ]

    def ack(self, message: CommandMessage) -> None:
        try:
            self._client.delete_message(
                QueueUrl=self._queue_url, ReceiptHandle=message.receipt_handle
            )
        except (ClientError, BotoCoreError):
            # 再配信されても処理済みコマンドの結果が再送されるだけ
            logger.warning(
                "Failed to ack command message",
                extra={"message_id": message.message_id},
            )

    def release(self, message: CommandMessage) -> None:
        try:
            self._client.change_message_visibility(
                QueueUrl=self._queue_url,
                ReceiptHandle=message.receipt_handle,
                VisibilityTimeout=0,
            )
        except (ClientError, BotoCoreError):
            # 可視性タイムアウト経過後に再配信される
            logger.warning(
                "Failed to release command message",
                extra={"message_id": message.message_id},
            )
