from .booking_id import BookingId as BookingId
from .car_id import CarId as CarId
from .rental_period import RentalPeriod as RentalPeriod
from .requester import Requester as Requester
