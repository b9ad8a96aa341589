from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from services.booking.applications.event_publisher import EventPublisher
from services.booking.domain.entity import Booking
from services.booking.domain.enum import BookingStatus, OutboxStatus
from services.booking.domain.exception import DuplicateCommandException
from services.booking.domain.outbox import CommandOutcome, OutboxMessage
from services.booking.domain.repository import BookingRepository, OutboxRepository
from services.booking.domain.value_object import (
    BookingId,
    CarId,
    RentalPeriod,
    Requester,
)
from services.shared.domain import (
    DuplicateResourceException,
    Money,
    OptimisticLockException,
    ResourceNotFoundException,
)

NOW = datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """テスト全体で使う固定の現在時刻"""
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def create_booking():
    """Booking を生成する Factory fixture（Factories as fixtures パターン）"""

    def _factory(
        status: BookingStatus = BookingStatus.PENDING,
        booking_id: str = "booking-1",
        car_id: str = "car-42",
        requester_id: str = "user-7",
        requester_contact: str = "user@example.com",
        rental_start: datetime = NOW + timedelta(days=2),
        rental_end: datetime = NOW + timedelta(days=4),
        total_price: Decimal = Decimal("300"),
        version: int = 0,
    ) -> Booking:
        return Booking(
            id=BookingId(value=booking_id),
            car_id=CarId(value=car_id),
            requester=Requester(requester_id=requester_id, contact=requester_contact),
            rental_period=RentalPeriod(start=rental_start, end=rental_end),
            total_price=Money(total_price),
            created_at=NOW,
            status=status,
            version=version,
        )

    return _factory


@pytest.fixture
def rental_details():
    """予約作成の入力（D+2 〜 D+4、日額 100）"""

    def _factory(**overrides):
        details = {
            "car_id": "car-42",
            "requester_id": "user-7",
            "requester_contact": "user@example.com",
            "rate_per_day": Decimal("100"),
            "rental_start": NOW + timedelta(days=2),
            "rental_end": NOW + timedelta(days=4),
        }
        details.update(overrides)
        return details

    return _factory


class InMemoryOutboxRepository(OutboxRepository):
    """Outbox と処理済みコマンド索引のインメモリ実装"""

    def __init__(self) -> None:
        self.messages: dict[str, OutboxMessage] = {}
        self.commands: dict[str, str] = {}

    def write(self, outcome: CommandOutcome) -> None:
        key = outcome.command_key
        if key is not None and key in self.commands:
            raise DuplicateCommandException(key)
        self.messages[outcome.message.message_id] = outcome.message
        if key is not None:
            self.commands[key] = outcome.message.message_id

    def add(self, outcome: CommandOutcome) -> None:
        self.write(outcome)

    def find_by_command_key(self, command_key: str) -> OutboxMessage | None:
        message_id = self.commands.get(command_key)
        return self.messages.get(message_id) if message_id else None

    def list_pending(self, limit: int) -> list[OutboxMessage]:
        pending = [
            m for m in self.messages.values() if m.status == OutboxStatus.PENDING
        ]
        return sorted(pending, key=lambda m: m.created_at)[:limit]

    def mark_published(self, message_id: str) -> None:
        self.messages[message_id] = self.messages[message_id].mark_published()


class InMemoryBookingRepository(BookingRepository):
    """予約レポジトリのインメモリ実装（保存時はスナップショットを保持する）"""

    def __init__(self, outbox: InMemoryOutboxRepository) -> None:
        self.outbox = outbox
        self.items: dict[BookingId, Booking] = {}
        self.writes = 0

    def _snapshot(self, booking: Booking) -> Booking:
        return Booking(
            id=booking.id,
            car_id=booking.car_id,
            requester=booking.requester,
            rental_period=booking.rental_period,
            total_price=booking.total_price,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            status=booking.status,
            version=booking.version,
        )

    def find_by_id(self, booking_id: BookingId) -> Booking | None:
        booking = self.items.get(booking_id)
        return self._snapshot(booking) if booking else None

    def exists_by_id(self, booking_id: BookingId) -> bool:
        return booking_id in self.items

    def list_all(self) -> list[Booking]:
        return [self._snapshot(b) for b in self.items.values()]

    def save(self, booking: Booking, outcome: CommandOutcome | None = None) -> None:
        if booking.id in self.items:
            raise DuplicateResourceException(f"Booking already exists: {booking.id}")
        if outcome is not None:
            self.outbox.write(outcome)
        self.items[booking.id] = self._snapshot(booking)
        self.writes += 1

    def update(
        self,
        booking: Booking,
        expected_version: int,
        outcome: CommandOutcome | None = None,
    ) -> None:
        stored = self.items.get(booking.id)
        if stored is None:
            raise ResourceNotFoundException(f"Booking not found with ID: {booking.id}")
        if stored.version != expected_version:
            raise OptimisticLockException("version conflict")
        if outcome is not None:
            self.outbox.write(outcome)
        self.items[booking.id] = self._snapshot(booking)
        self.writes += 1

    def delete_by_id(self, booking_id: BookingId) -> None:
        if booking_id not in self.items:
            raise ResourceNotFoundException(f"Booking not found with ID: {booking_id}")
        del self.items[booking_id]


class RecordingEventPublisher(EventPublisher):
    """送信したイベントを記録する EventPublisher"""

    def __init__(self) -> None:
        self.published: list[dict] = []

    def publish(self, topic, event, *, deduplication_id, group_key) -> None:
        self.published.append(
            {
                "topic": topic,
                "event": event,
                "deduplication_id": deduplication_id,
                "group_key": group_key,
            }
        )


@pytest.fixture
def outbox():
    return InMemoryOutboxRepository()


@pytest.fixture
def booking_repository(outbox):
    return InMemoryBookingRepository(outbox)


@pytest.fixture
def publisher():
    return RecordingEventPublisher()
