"""Address lookup and delivery quote schemas"""

from pydantic import BaseModel, Field
from typing import Optional, List
from app.models.common import GeocodeResult


class GeocodeResponse(BaseModel):
    query: str
    results: List[GeocodeResult]


class ReverseGeocodeResponse(BaseModel):
    lng: float
    lat: float
    label: Optional[str] = None


class DeliveryQuoteRequest(BaseModel):
    """Customer coordinates to check against the delivery area"""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    class Config:
        json_schema_extra = {
            "example": {"lat": -22.9056, "lng": -47.0608}
        }
