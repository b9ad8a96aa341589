from .cancel_booking import CancelBookingService as CancelBookingService
from .create_booking import CreateBookingService as CreateBookingService
from .event_publisher import EventPublisher as EventPublisher
from .manage_booking import ManageBookingService as ManageBookingService
from .outbox_relay import OutboxRelay as OutboxRelay
