"""Domain errors raised by the core and rendered by the API error handlers"""

from typing import Optional, Dict, List


class StorefrontError(Exception):
    """Base class for errors that map to a structured JSON response"""

    status_code: int = 400
    error: str = "Bad Request"

    def __init__(self, detail: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.detail = detail
        self.fields = fields or {}

    def to_dict(self) -> dict:
        content = {
            "success": False,
            "error": self.error,
            "detail": self.detail,
        }
        if self.fields:
            content["fields"] = self.fields
        return content


class ValidationFailed(StorefrontError):
    """Malformed or missing input, detected before any side effect"""
    status_code = 422
    error = "Validation Error"


class NotFound(StorefrontError):
    """Unknown product, category, order or webhook id"""
    status_code = 404
    error = "Not Found"

    def __init__(self, detail: str, ids: Optional[List[str]] = None, fields: Optional[Dict[str, str]] = None):
        super().__init__(detail, fields)
        self.ids = ids or []


class ExternalServiceError(StorefrontError):
    """A lookup provider could not be reached or answered with an error"""
    status_code = 502
    error = "External Service Error"


class AddressNotValidated(StorefrontError):
    """The address could not be checked against the delivery area"""
    status_code = 422
    error = "Address Not Validated"


class OutOfServiceArea(StorefrontError):
    """The address is farther than the store delivers"""
    status_code = 422
    error = "Out Of Service Area"

    def __init__(self, detail: str, distance_km: float):
        super().__init__(detail, {"distanceKm": f"{distance_km:.1f}"})
        self.distance_km = distance_km


class InvalidStatusTransition(StorefrontError):
    """Order status change not allowed by the order lifecycle"""
    status_code = 409
    error = "Invalid Status Transition"


class ClosedForOrders(StorefrontError):
    """Neither immediate nor scheduled orders are accepted right now"""
    status_code = 409
    error = "Closed For Orders"
