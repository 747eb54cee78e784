"""Address geocoding via the Mapbox Geocoding API.

Only used to pre-populate load coordinates.  A missing token, an empty
result or a transport error all return ``None``: the load is saved
without coordinates and simply does not appear on the map.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from app.config import settings

logger = logging.getLogger("freightlink.geocoding")

MAPBOX_GEOCODE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class MapboxGeocoder:
    def __init__(
        self,
        access_token: str | None = None,
        country: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.access_token = settings.mapbox_access_token if access_token is None else access_token
        self.country = country or settings.geocoding_country
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self.transport = transport

    async def geocode(self, address: str) -> Coordinates | None:
        if not address or not address.strip():
            return None
        if not self.access_token:
            logger.debug("Mapbox access token not configured; skipping geocode")
            return None

        url = MAPBOX_GEOCODE_URL.format(query=quote(address.strip()))
        params = {
            "access_token": self.access_token,
            "country": self.country,
            "limit": 1,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", address, e)
            return None

        features = data.get("features") or []
        if not features:
            logger.info("No geocoding match for %r", address)
            return None

        longitude, latitude = features[0]["center"]
        return Coordinates(latitude=latitude, longitude=longitude)


_geocoder: MapboxGeocoder | None = None


def get_geocoder() -> MapboxGeocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = MapboxGeocoder()
    return _geocoder
