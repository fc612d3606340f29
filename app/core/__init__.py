"""Core business logic of the storefront"""

from app.core.config_loader import ConfigLoader, config_loader, get_config_loader
from app.core.delivery import compute_fee, quote_delivery
from app.core.scheduling import (
    is_within_operating_hours,
    generate_available_dates,
    generate_time_windows,
    decide,
)
from app.core.orders import submit_order, transition_order_status

__all__ = [
    "ConfigLoader",
    "config_loader",
    "get_config_loader",
    "compute_fee",
    "quote_delivery",
    "is_within_operating_hours",
    "generate_available_dates",
    "generate_time_windows",
    "decide",
    "submit_order",
    "transition_order_status",
]
