"""依存関係の組み立て（Composition Root）

Lambda ハンドラとワーカーの両方から使う。
"""

from services.booking.applications.cancel_booking import CancelBookingService
from services.booking.applications.create_booking import CreateBookingService
from services.booking.applications.outbox_relay import OutboxRelay
from services.booking.config import BookingSettings
from services.booking.domain.factory import BookingFactory
from services.booking.handlers.command_dispatcher import CommandDispatcher
from services.booking.infrastructure.dynamodb_booking_repository import (
    DynamoDBBookingRepository,
)
from services.booking.infrastructure.dynamodb_outbox_repository import (
    DynamoDBOutboxRepository,
)
from services.booking.infrastructure.sns_event_publisher import SnsEventPublisher


def build_relay(settings: BookingSettings) -> OutboxRelay:
    outbox = DynamoDBOutboxRepository(table_name=settings.table_name)
    publisher = SnsEventPublisher(
        topic_arns={settings.events_topic: settings.events_topic_arn or ""}
    )
    return OutboxRelay(outbox=outbox, publisher=publisher)


def build_dispatcher(settings: BookingSettings) -> CommandDispatcher:
    repository = DynamoDBBookingRepository(table_name=settings.table_name)
    outbox = DynamoDBOutboxRepository(table_name=settings.table_name)
    publisher = SnsEventPublisher(
        topic_arns={settings.events_topic: settings.events_topic_arn or ""}
    )
    return CommandDispatcher(
        create_service=CreateBookingService(
            repository=repository,
            outbox=outbox,
            factory=BookingFactory(),
            topic=settings.events_topic,
            idempotency_enabled=settings.idempotency_enabled,
        ),
        cancel_service=CancelBookingService(
            repository=repository,
            outbox=outbox,
            topic=settings.events_topic,
            recancel_policy=settings.recancel_policy,
            idempotency_enabled=settings.idempotency_enabled,
        ),
        relay=OutboxRelay(outbox=outbox, publisher=publisher),
    )
