"""Delivery area configuration models"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class RouteProfile(str, Enum):
    """Travel profile used for route distance lookups"""
    DRIVING = "driving"
    CYCLING = "cycling"


class DeliveryConfig(BaseModel):
    """Store location and delivery fee rules"""
    storeLat: Optional[float] = Field(None, ge=-90, le=90)
    storeLng: Optional[float] = Field(None, ge=-180, le=180)
    storeAddress: Optional[str] = None
    deliveryFeePerKm: float = Field(default=0.0, ge=0)
    # Free-of-fee radius, in meters
    minDeliveryDistanceForFee: float = Field(default=3000.0, ge=0)
    # Maximum service radius, in kilometers
    radius: float = Field(default=10.0, gt=0)
    feeRoundingStep: float = Field(default=0.5, gt=0)
    routeProfile: RouteProfile = RouteProfile.DRIVING
    deliveryEnabled: bool = True
    pickupEnabled: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "storeLat": -23.55052,
                "storeLng": -46.633308,
                "storeAddress": "Praça da Sé, São Paulo - SP",
                "deliveryFeePerKm": 2.5,
                "minDeliveryDistanceForFee": 3000,
                "radius": 10,
                "feeRoundingStep": 0.5,
                "routeProfile": "driving",
                "deliveryEnabled": True,
                "pickupEnabled": True
            }
        }

    @property
    def has_store_location(self) -> bool:
        return self.storeLat is not None and self.storeLng is not None


class DeliveryQuote(BaseModel):
    """Outcome of evaluating a customer address against the delivery area"""
    deliverable: bool
    distanceMeters: float
    distanceKm: float
    fee: float
    message: str
