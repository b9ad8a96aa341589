from .booking_repository import BookingRepository as BookingRepository
from .outbox_repository import OutboxRepository as OutboxRepository
