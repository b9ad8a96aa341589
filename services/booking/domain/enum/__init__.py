from .booking_status import BookingStatus as BookingStatus
from .failure_reason import FailureReason as FailureReason
from .message_type import CommandType as CommandType
from .outbox_status import OutboxStatus as OutboxStatus
from .recancel_policy import RecancelPolicy as RecancelPolicy
