"""HTTP surface over the rental coordinator."""

from .errors import ApiError, api_error_handler, rental_error_handler
from .rentals_api import router

__all__ = ["ApiError", "api_error_handler", "rental_error_handler", "router"]
