"""Clients for the geocoding, routing and postal code providers"""

from typing import Optional, List
from urllib.parse import quote
import logging
import re

import httpx

from app.config import settings
from app.core.errors import ExternalServiceError, ValidationFailed
from app.models.common import Coordinates, GeocodeResult, PostalAddress
from app.models.delivery import RouteProfile

logger = logging.getLogger(__name__)


def normalize_postal_code(code: str) -> str:
    """Strip formatting from a CEP; it must have exactly 8 digits"""
    digits = re.sub(r"\D", "", code or "")
    if len(digits) != 8:
        raise ValidationFailed(
            "Invalid postal code",
            {"code": "Postal code must have 8 digits"},
        )
    return digits


class PostalCodeClient:
    """ViaCEP postal code lookup"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url or settings.viacep_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    async def lookup(self, code: str) -> PostalAddress:
        """
        Resolve a postal code to street, neighborhood, city and state.

        Returns an address with found=False when the code does not exist.

        Raises:
            ValidationFailed: the code does not have 8 digits
            ExternalServiceError: the provider could not be reached
        """
        digits = normalize_postal_code(code)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(f"/ws/{digits}/json/")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[PostalCodeClient] HTTP error looking up {digits}: status {e.response.status_code}")
            raise ExternalServiceError("Failed to look up postal code. Try again.")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[PostalCodeClient] Error looking up {digits}: {e}")
            raise ExternalServiceError("Failed to look up postal code. Try again.")

        if data.get("erro"):
            logger.info(f"[PostalCodeClient] Postal code not found: {digits}")
            return PostalAddress(code=digits, found=False)

        return PostalAddress(
            street=data.get("logradouro") or "",
            neighborhood=data.get("bairro") or "",
            city=data.get("localidade") or "",
            state=data.get("uf") or "",
            code=data.get("cep") or digits,
            found=True,
        )


class MapboxClient:
    """Mapbox geocoding and directions"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.mapbox_access_token
        self.base_url = base_url or settings.mapbox_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _require_token(self):
        if not self.access_token:
            logger.warning("[MapboxClient] Access token not configured")
            raise ExternalServiceError("Geocoding service is not configured")

    async def _get(self, path: str, params: dict) -> dict:
        params = {**params, "access_token": self.access_token}
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def forward_geocode(
        self, query: str, country: str = "br", limit: int = 5, language: str = "pt-BR"
    ) -> List[GeocodeResult]:
        """Ranked matches for a free-text address"""
        self._require_token()
        path = f"/geocoding/v5/mapbox.places/{quote(query, safe='')}.json"
        try:
            data = await self._get(path, {"country": country, "limit": limit, "language": language})
        except httpx.HTTPStatusError as e:
            logger.error(f"[MapboxClient] HTTP error geocoding '{query}': status {e.response.status_code}")
            raise ExternalServiceError("Geocoding request failed. Try again.")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[MapboxClient] Error geocoding '{query}': {e}")
            raise ExternalServiceError("Geocoding request failed. Try again.")

        results = []
        for feature in data.get("features", []):
            center = feature.get("center")
            if not center or len(center) != 2:
                continue
            results.append(GeocodeResult(label=feature.get("place_name", ""), lng=center[0], lat=center[1]))
        return results

    async def reverse_geocode(self, lng: float, lat: float, language: str = "pt-BR") -> Optional[str]:
        """Label of the place at a coordinate, if any"""
        self._require_token()
        path = f"/geocoding/v5/mapbox.places/{lng},{lat}.json"
        try:
            data = await self._get(path, {"language": language, "limit": 1})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[MapboxClient] Error reverse geocoding {lng},{lat}: {e}")
            raise ExternalServiceError("Reverse geocoding request failed. Try again.")

        features = data.get("features", [])
        if not features:
            return None
        return features[0].get("place_name")

    async def route_distance(
        self,
        origin: Coordinates,
        destination: Coordinates,
        profile: RouteProfile = RouteProfile.DRIVING,
    ) -> Optional[float]:
        """
        Distance in meters of the best route between two points.

        Returns None when the provider fails or finds no route; callers must
        treat that as an unvalidated address, never as a zero distance.
        """
        self._require_token()
        profile = RouteProfile(profile)
        coordinates = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        path = f"/directions/v5/mapbox/{profile.value}/{coordinates}"
        params = {
            "alternatives": "false",
            "geometries": "geojson",
            "overview": "simplified",
            "steps": "false",
        }
        try:
            data = await self._get(path, params)
        except httpx.HTTPStatusError as e:
            logger.error(f"[MapboxClient] HTTP error fetching route: status {e.response.status_code}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[MapboxClient] Error fetching route: {e}")
            return None

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            logger.warning(f"[MapboxClient] No route found: {data.get('code')}")
            return None
        return float(routes[0]["distance"])


def get_mapbox_client() -> MapboxClient:
    """Dependency to get the Mapbox client"""
    return MapboxClient()


def get_postal_code_client() -> PostalCodeClient:
    """Dependency to get the postal code client"""
    return PostalCodeClient()
