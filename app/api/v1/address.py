"""Address lookup and delivery quote endpoints"""

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from app.database import get_database
from app.core.config_loader import ConfigLoader, get_config_loader
from app.core.delivery import quote_for_coordinates
from app.core.geo import MapboxClient, PostalCodeClient, get_mapbox_client, get_postal_code_client
from app.models.common import Coordinates, PostalAddress
from app.models.delivery import DeliveryQuote
from app.schemas.address import GeocodeResponse, ReverseGeocodeResponse, DeliveryQuoteRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/address/postal-code/{code}", response_model=PostalAddress)
async def lookup_postal_code(
    code: str,
    client: PostalCodeClient = Depends(get_postal_code_client)
):
    """Street, neighborhood, city and state of a CEP; found=false when it does not exist"""
    return await client.lookup(code)


@router.get("/address/geocode", response_model=GeocodeResponse)
async def geocode_address(
    q: str = Query(..., min_length=3),
    limit: int = Query(5, ge=1, le=10),
    client: MapboxClient = Depends(get_mapbox_client)
):
    """Ranked address suggestions for a free-text query, restricted to Brazil"""
    results = await client.forward_geocode(q, country="br", limit=limit)
    return GeocodeResponse(query=q, results=results)


@router.get("/address/reverse", response_model=ReverseGeocodeResponse)
async def reverse_geocode(
    lng: float = Query(..., ge=-180, le=180),
    lat: float = Query(..., ge=-90, le=90),
    client: MapboxClient = Depends(get_mapbox_client)
):
    """Address label of a point picked on the map"""
    label = await client.reverse_geocode(lng, lat)
    return ReverseGeocodeResponse(lng=lng, lat=lat, label=label)


@router.post("/delivery/quote", response_model=DeliveryQuote)
async def quote_delivery_fee(
    request: DeliveryQuoteRequest,
    db: AsyncIOMotorDatabase = Depends(get_database),
    loader: ConfigLoader = Depends(get_config_loader),
    client: MapboxClient = Depends(get_mapbox_client)
):
    """
    Route distance from the store and the delivery fee for an address.

    A failed lookup answers 422 "Address Not Validated", never a zero fee;
    an address beyond the service radius answers 422 with its distance.
    """
    config = await loader.get_delivery_config(db)
    return await quote_for_coordinates(Coordinates(lat=request.lat, lng=request.lng), config, client)
