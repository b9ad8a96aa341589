from .pricing_calculator import calculate_total_price as calculate_total_price
from .rental_period_validator import validate_rental_period as validate_rental_period
