from .entity import Booking as Booking
from .enum import BookingStatus as BookingStatus
from .enum import CommandType as CommandType
from .enum import FailureReason as FailureReason
from .enum import OutboxStatus as OutboxStatus
from .enum import RecancelPolicy as RecancelPolicy
from .factory import BookingFactory as BookingFactory
from .factory import RentalDetails as RentalDetails
from .outbox import CommandOutcome as CommandOutcome
from .outbox import OutboxMessage as OutboxMessage
from .repository import BookingRepository as BookingRepository
from .repository import OutboxRepository as OutboxRepository
from .value_object import BookingId as BookingId
from .value_object import CarId as CarId
from .value_object import RentalPeriod as RentalPeriod
from .value_object import Requester as Requester
