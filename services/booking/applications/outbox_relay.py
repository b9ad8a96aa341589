from aws_lambda_powertools import Logger
from aws_lambda_powertools.metrics import MetricUnit

from services.booking.applications.event_publisher import EventPublisher
from services.booking.domain.outbox import OutboxMessage
from services.booking.domain.repository import OutboxRepository
from services.shared.domain import PersistenceException, TransportException
from services.shared.utils.logger import get_metrics

logger = Logger()
metrics = get_metrics()


class OutboxRelay:
    """Outbox の結果イベントをバスへ送信する

    message_id を重複排除キーとして送るので、同じメッセージを
    何度送り直しても受信側には 1 件しか届かない。
    """

    def __init__(self, outbox: OutboxRepository, publisher: EventPublisher) -> None:
        self._outbox = outbox
        self._publisher = publisher

    def deliver(self, message: OutboxMessage) -> OutboxMessage:
        """1 件送信し、記録済みなら送信済みにする

        Raises:
            TransportException: 送信に失敗した（メッセージは PENDING のまま残る）
        """
        try:
            self._publisher.publish(
                message.topic,
                message.payload,
                deduplication_id=message.message_id,
                group_key=message.group_key,
            )
        except TransportException:
            metrics.add_metric(
                name="OutcomeEventPublishFailed", unit=MetricUnit.Count, value=1
            )
            logger.exception(
                "Failed to publish outcome event, saga is stranded until redelivery",
                extra={
                    "saga_transaction_id": message.saga_transaction_id,
                    "message_id": message.message_id,
                    "event_type": message.event_type,
                },
            )
            raise

        metrics.add_metric(name=message.event_type, unit=MetricUnit.Count, value=1)
        logger.info(
            f"Published {message.event_type}",
            extra={
                "saga_transaction_id": message.saga_transaction_id,
                "message_id": message.message_id,
            },
        )

        if not message.recorded:
            return message
        try:
            self._outbox.mark_published(message.message_id)
        except PersistenceException:
            # 次回の relay_pending で再送されるが、バス側で重複排除される
            logger.warning(
                "Could not mark outbox message as published",
                extra={"message_id": message.message_id},
            )
            return message
        return message.mark_published()

    def relay_pending(self, limit: int = 25) -> int:
        """未送信メッセージを古い順に送信し、送信できた件数を返す

        送信に失敗したら以降のメッセージは次回に回す（順序を保つため）。
        """
        sent = 0
        for message in self._outbox.list_pending(limit):
            try:
                self.deliver(message)
            except TransportException:
                break
            sent += 1
        if sent:
            logger.info("Relayed pending outbox messages", extra={"count": sent})
        return sent
