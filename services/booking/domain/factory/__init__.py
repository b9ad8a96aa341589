from .booking_factory import BookingFactory as BookingFactory
from .booking_factory import RentalDetails as RentalDetails
