from .exceptions import (
    BookingRuleViolationException,
    DuplicateCommandException,
    InvalidCommandException,
    InvalidStatusTransitionException,
    RentalPeriodValidationException,
)

__all__ = [
    "BookingRuleViolationException",
    "RentalPeriodValidationException",
    "InvalidStatusTransitionException",
    "DuplicateCommandException",
    "InvalidCommandException",
]
