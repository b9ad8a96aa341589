from .booking_events import BookingCancellationFailedEvent as BookingCancellationFailedEvent
from .booking_events import BookingCancelledEvent as BookingCancelledEvent
from .booking_events import BookingCreatedEvent as BookingCreatedEvent
from .booking_events import BookingCreationFailedEvent as BookingCreationFailedEvent
from .booking_events import BookingEvent as BookingEvent
from .booking_events import BookingFailureEvent as BookingFailureEvent
