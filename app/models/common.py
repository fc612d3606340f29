"""Common models and base classes"""

from pydantic import BaseModel, Field
from typing import Optional


class Coordinates(BaseModel):
    """Geographic point"""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PostalAddress(BaseModel):
    """Address resolved from a postal code (CEP)"""
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""
    code: str
    found: bool


class GeocodeResult(BaseModel):
    """Ranked geocoding match"""
    label: str
    lng: float
    lat: float


class DeliveryAddress(BaseModel):
    """Customer delivery address"""
    fullAddress: str = Field(min_length=1)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    postalCode: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    reference: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "fullAddress": "Rua das Flores, 120 - Centro, Campinas - SP",
                "lat": -22.9056,
                "lng": -47.0608,
                "postalCode": "13010-000",
                "street": "Rua das Flores",
                "number": "120",
                "complement": "Apto 12",
                "reference": "Em frente à padaria",
                "neighborhood": "Centro",
                "city": "Campinas",
                "state": "SP"
            }
        }

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)
